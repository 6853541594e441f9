from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class DishRecord(BaseModel):
    """One dish as returned by the structured extraction model. All three fields are required."""

    dish: str = Field(
        description=(
            "The dish name as printed on the menu, translated into the target language. "
            "If the name is already in the target language, copy it unchanged."
        ),
    )
    price: str = Field(
        description=(
            "The price exactly as printed next to the dish, including any currency symbol. "
            "Return an empty string if no price is shown."
        ),
    )
    description: str = Field(
        description=(
            "The dish description or ingredient list printed on the menu, translated into the target language. "
            "Return an empty string if no description is provided."
        ),
    )


class MenuItem(BaseModel):
    dish: str = Field(min_length=1)
    price: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    error: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        # image is always present (possibly null); the optional text fields are dropped when empty
        out: Dict[str, Any] = {"dish": self.dish}
        if self.price:
            out["price"] = self.price
        if self.description:
            out["description"] = self.description
        out["image"] = self.image
        if self.error:
            out["error"] = self.error
        return out


class ResponsePayload(BaseModel):
    results: List[MenuItem] = Field(default_factory=list)
    searchWarning: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "results": [item.to_json() for item in self.results],
            "searchWarning": self.searchWarning,
        }


@dataclass(frozen=True)
class ExtractionResult:
    """Raw OCR lines (needs the line filter) or already-typed dish records."""

    lines: Optional[List[str]] = None
    items: Optional[List[MenuItem]] = None

    @property
    def needs_line_filter(self) -> bool:
        return self.lines is not None


CONTENT_BLOCKED = "content_blocked"
GENERATION_UNAVAILABLE = "generation_unavailable"
SEARCH_FAILED = "search_failed"


@dataclass(frozen=True)
class IllustrationOutcome:
    """Per-item result of an illustration attempt. Failures are data, never raised."""

    image: Optional[str] = None
    error: Optional[str] = None
    kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, image: Optional[str]) -> "IllustrationOutcome":
        return cls(image=image)

    @classmethod
    def failure(cls, kind: str, error: str) -> "IllustrationOutcome":
        return cls(image=None, error=error, kind=kind)
