"""Colour name to swatch mapping for attribute colour lists."""

from __future__ import annotations

RGB = tuple[int, int, int]

FALLBACK_SWATCH: RGB = (128, 128, 128)

_SWATCHES: dict[tuple[str, ...], RGB] = {
    ("red", "crimson", "scarlet"): (255, 59, 48),
    ("blue", "navy", "navy blue", "royal blue"): (0, 0, 204),
    ("green", "forest green", "emerald"): (52, 199, 89),
    ("yellow", "gold"): (255, 204, 0),
    ("orange", "tangerine"): (255, 149, 0),
    ("purple", "violet", "lavender"): (175, 82, 222),
    ("pink", "magenta", "fuchsia"): (255, 45, 85),
    ("brown", "tan", "chocolate"): (153, 102, 51),
    ("gray", "grey"): (128, 128, 128),
    ("black",): (0, 0, 0),
    ("white", "ivory", "cream"): (255, 255, 255),
    ("teal", "turquoise", "aqua"): (0, 128, 128),
    ("beige", "khaki"): (245, 245, 219),
    ("maroon", "burgundy"): (128, 0, 0),
    ("olive", "olive green"): (128, 128, 0),
}

_LOOKUP: dict[str, RGB] = {name: rgb for names, rgb in _SWATCHES.items() for name in names}


class ColorSwatches:
    """Resolves free-form colour names reported by the analysis service."""

    def swatch(self, color_name: str) -> RGB:
        """Return the RGB swatch for a colour name, grey when unknown."""

        return _LOOKUP.get(color_name.strip().lower(), FALLBACK_SWATCH)

    def hex_code(self, color_name: str) -> str:
        r, g, b = self.swatch(color_name)
        return f"#{r:02x}{g:02x}{b:02x}"


def swatch_for(color_name: str) -> RGB:
    return ColorSwatches().swatch(color_name)
