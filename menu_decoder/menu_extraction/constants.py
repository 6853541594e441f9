from pathlib import Path

# ==========================================
# OCR path
# ==========================================
VISION_REST_URL = "https://vision.googleapis.com/v1/images:annotate"
VISION_TIMEOUT = 30

# Handed downstream when text detection finds nothing at all.
# Every line is rejected by the line filter, so the request returns no results.
PLACEHOLDER_MENU_LINES = ["MENU", "Spaghetti Carbonara - $14.50", "Tiramisu - $7.00"]

# Returned by MockExtractor when mock mode is switched on
SAMPLE_MENU_LINES = [
    "MENU",
    "STARTERS",
    "Burrata with Heirloom Tomatoes",
    "Crispy Calamari - $12.00",
    "MAINS",
    "Spaghetti Carbonara",
    "Grilled Salmon with Lemon Butter",
    "Spicy Thai Green Curry",
    "DESSERTS",
    "Tiramisu",
    "Tiramisu - $7.00",
]

# ==========================================
# Structured (Gemini) path
# ==========================================
DEFAULT_LANGUAGE = "English"

with open(Path(__file__).resolve().parent / "menu_read_prompt.txt", "r") as f:
    MENU_READ_PROMPT = f.read()
