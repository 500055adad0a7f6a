"""Clothing attribute records produced by the analysis service."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from glasscloset.catalog.colors import RGB, swatch_for

NOT_DETECTED = "Not detected"
NULL_SENTINEL = "null"
SENTINELS = frozenset({NULL_SENTINEL, NOT_DETECTED})


def is_blank(value: str) -> bool:
    """True for empty strings and the service's placeholder values."""

    return not value or value in SENTINELS


@dataclass(frozen=True, slots=True)
class ClothingAttributes:
    """Attributes reported for a single garment."""

    main_colors: list[str] = field(default_factory=list)
    secondary_colors: list[str] = field(default_factory=list)
    garment_type: str = ""
    pattern: str = ""
    material: str = ""
    style: str = ""
    season: str = ""
    occasion: str = ""
    fit: str = ""
    brand: str = ""
    id: str | None = None
    image_url: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when none of the essential attributes were detected."""

        return (
            not self.main_colors
            and is_blank(self.garment_type)
            and is_blank(self.material)
            and is_blank(self.pattern)
            and is_blank(self.style)
        )

    @property
    def primary_color(self) -> RGB | None:
        if self.main_colors and not is_blank(self.main_colors[0]):
            return swatch_for(self.main_colors[0])
        return None

    @property
    def secondary_color(self) -> RGB | None:
        if self.secondary_colors and not is_blank(self.secondary_colors[0]):
            return swatch_for(self.secondary_colors[0])
        return None

    def with_server_ids(self, item_id: str | None, image_url: str | None) -> "ClothingAttributes":
        """Return a copy carrying the identifiers issued by the backend."""

        return replace(self, id=item_id, image_url=image_url)

    def formatted(self) -> str:
        """Multi-line human readable summary used by the CLI."""

        lines: list[str] = []
        if not is_blank(self.garment_type):
            lines.append(f"Type: {self.garment_type.title()}")
        if self.main_colors:
            lines.append("Main Colors: " + ", ".join(color.title() for color in self.main_colors))
        if self.secondary_colors and not is_blank(self.secondary_colors[0]):
            lines.append("Accent Colors: " + ", ".join(color.title() for color in self.secondary_colors))
        for label, value in (
            ("Material", self.material),
            ("Pattern", self.pattern),
            ("Style", self.style),
            ("Season", self.season),
            ("Occasion", self.occasion),
            ("Fit", self.fit),
        ):
            if not is_blank(value):
                lines.append(f"{label}: {value.title()}")
        if not is_blank(self.brand):
            lines.append(f"Brand: {self.brand}")
        return "\n".join(lines) if lines else "No attributes available"

    def searchable_text(self) -> str:
        """Lowercased concatenation of every attribute and colour."""

        fields = " ".join(
            [
                self.garment_type,
                self.material,
                self.style,
                self.pattern,
                self.season,
                self.occasion,
                self.fit,
                self.brand,
            ],
        )
        colors = " ".join(self.main_colors + self.secondary_colors)
        return f"{fields} {colors}".lower()

    def to_wire(self) -> dict[str, Any]:
        return {
            "main_colors": list(self.main_colors),
            "secondary_colors": list(self.secondary_colors),
            "garment_type": self.garment_type,
            "pattern": self.pattern,
            "material": self.material,
            "style": self.style,
            "season": self.season,
            "occasion": self.occasion,
            "fit": self.fit,
            "brand": self.brand,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class ClothingItem:
    """A garment stored in the user's closet."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    attributes: ClothingAttributes = field(default_factory=ClothingAttributes)
    image_url: str | None = None
    date_added: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # naive dates are taken as UTC
        if self.date_added.tzinfo is None:
            object.__setattr__(self, "date_added", self.date_added.replace(tzinfo=timezone.utc))

    @property
    def name(self) -> str:
        """Display name such as ``Navy Blue Hoodie``."""

        type_name = self.attributes.garment_type.title() if self.attributes.garment_type else "Item"
        if self.attributes.main_colors:
            return f"{self.attributes.main_colors[0].title()} {type_name}"
        return type_name

    @classmethod
    def from_analysis(cls, attributes: ClothingAttributes) -> "ClothingItem":
        """Create the closet entry for a freshly analysed garment."""

        return cls(
            id=attributes.id or str(uuid.uuid4()),
            attributes=attributes,
            image_url=attributes.image_url,
        )

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "attributes": self.attributes.to_wire(),
            "created_at": self.date_added.isoformat(timespec="microseconds"),
        }
        if self.image_url is not None:
            payload["image_url"] = self.image_url
        return payload
