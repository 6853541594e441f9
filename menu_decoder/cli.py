import argparse
import json
import sys
from pathlib import Path

from menu_decoder.clients import build_genai_client
from menu_decoder.config import load_settings
from menu_decoder.errors import ConfigurationMissing, MenuDecoderError
from menu_decoder.image_generating.nanobanana import (
    call_nanobanana,
    classify_missing_image,
    first_inline_image,
    prepare_prompt,
)
from menu_decoder.logging_config import logger
from menu_decoder.menu_extraction.constants import DEFAULT_LANGUAGE
from menu_decoder.menu_extraction.gemini_calls import list_generation_models
from menu_decoder.pipeline import MISSING_GEMINI, build_decoder
from menu_decoder.schema import MenuItem


def _require_genai_client(settings):
    client = build_genai_client(settings)
    if client is None:
        raise ConfigurationMissing(MISSING_GEMINI)
    return client


def run_decode(args, settings) -> int:
    decoder = build_decoder(settings)
    image_bytes = Path(args.image_path).read_bytes()
    payload = decoder.decode(image_bytes, args.language)
    print(json.dumps(payload.to_json(), indent=2, ensure_ascii=False))
    return 0


def run_list_models(args, settings) -> int:
    client = _require_genai_client(settings)
    names = list_generation_models(client)
    if not names:
        print("No models found with 'generateContent' capability.")
        return 1
    print("Available Models:")
    for name in names:
        print(f"  {name}")
    return 0


def run_generate_image(args, settings) -> int:
    client = _require_genai_client(settings)
    item = MenuItem(dish=args.dish, description=args.description or None)
    prompt = prepare_prompt(item)
    logger.info("Generating image with %s: %s", settings.image_model, prompt)

    response = call_nanobanana(client, settings.image_model, prompt)
    image = first_inline_image(response)
    if image is None:
        kind, message = classify_missing_image(response)
        print(f"No image generated ({kind}): {message}", file=sys.stderr)
        return 1

    data, mime_type = image
    out_path = Path(args.out)
    out_path.write_bytes(data)
    print(f"Saved {mime_type} image to {out_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="menu-decoder", description="Menu decoder developer tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    decode = subparsers.add_parser("decode", help="Run the full pipeline on a local menu photo")
    decode.add_argument("image_path", type=str, help="Path to a menu image")
    decode.add_argument("--language", type=str, default=DEFAULT_LANGUAGE, help="Target language for dish names")
    decode.set_defaults(func=run_decode)

    list_models = subparsers.add_parser("list-models", help="List Gemini models that support generateContent")
    list_models.set_defaults(func=run_list_models)

    generate = subparsers.add_parser("generate-image", help="Generate one dish photo")
    generate.add_argument("dish", type=str, help="Dish name")
    generate.add_argument("--description", type=str, default="", help="Dish description")
    generate.add_argument("--out", type=str, default="dish.png", help="Where to write the image")
    generate.set_defaults(func=run_generate_image)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    try:
        return args.func(args, settings)
    except MenuDecoderError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
