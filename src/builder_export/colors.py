from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

NAMED_COLORS: Final[dict[str, str]] = {
    "black": "#000000",
    "white": "#FFFFFF",
    "red": "#FF0000",
    "green": "#008000",
    "lime": "#00FF00",
    "blue": "#0000FF",
    "navy": "#000080",
    "yellow": "#FFFF00",
    "orange": "#FFA500",
    "purple": "#800080",
    "pink": "#FFC0CB",
    "gray": "#808080",
    "grey": "#808080",
    "silver": "#C0C0C0",
    "brown": "#A52A2A",
    "cyan": "#00FFFF",
    "aqua": "#00FFFF",
    "magenta": "#FF00FF",
    "fuchsia": "#FF00FF",
    "maroon": "#800000",
    "olive": "#808000",
    "teal": "#008080",
    "gold": "#FFD700",
    "indigo": "#4B0082",
    "violet": "#EE82EE",
    "coral": "#FF7F50",
    "salmon": "#FA8072",
    "crimson": "#DC143C",
    "tomato": "#FF6347",
    "beige": "#F5F5DC",
    "ivory": "#FFFFF0",
    "khaki": "#F0E68C",
    "lavender": "#E6E6FA",
    "turquoise": "#40E0D0",
    "tan": "#D2B48C",
    "whitesmoke": "#F5F5F5",
    "lightgray": "#D3D3D3",
    "lightgrey": "#D3D3D3",
    "darkgray": "#A9A9A9",
    "darkgrey": "#A9A9A9",
    "dimgray": "#696969",
    "darkblue": "#00008B",
    "lightblue": "#ADD8E6",
    "darkgreen": "#006400",
    "lightgreen": "#90EE90",
    "darkred": "#8B0000",
}

# Values that carry no concrete color.
_NO_COLOR: Final[frozenset[str]] = frozenset(
    {"", "transparent", "inherit", "initial", "unset", "currentcolor", "none"}
)

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_RE = re.compile(
    r"^rgba?\(\s*([\d.]+%?)\s*[, ]\s*([\d.]+%?)\s*[, ]\s*([\d.]+%?)"
    r"(?:\s*[,/]\s*[\d.]+%?)?\s*\)$",
    re.IGNORECASE,
)
_URL_RE = re.compile(r"url\(\s*(['\"]?)(.*?)\1\s*\)", re.IGNORECASE)
_LENGTH_RE = re.compile(r"^(-?\d+(?:\.\d+)?)([a-z%]*)$", re.IGNORECASE)


def _channel(raw: str) -> int:
    if raw.endswith("%"):
        value = float(raw[:-1]) * 255 / 100
    else:
        value = float(raw)
    return max(0, min(255, round(value)))


def normalize_color(value: object) -> str:
    """Return a color as uppercase ``#RRGGBB``, or "" when there is none.

    Accepts hex (3, 4, 6 or 8 digits), ``rgb()``/``rgba()`` and CSS named
    colors. Alpha is dropped. Never raises.
    """

    if not isinstance(value, str):
        return ""
    text = value.strip().lower()
    if text in _NO_COLOR:
        return ""

    if text in NAMED_COLORS:
        return NAMED_COLORS[text]

    m = _HEX_RE.match(text)
    if m:
        digits = m.group(1)
        if len(digits) in (3, 4):
            digits = "".join(c * 2 for c in digits[:3])
        return "#" + digits[:6].upper()

    m = _RGB_RE.match(text)
    if m:
        try:
            r, g, b = (_channel(part) for part in m.groups())
        except ValueError:
            return ""
        return f"#{r:02X}{g:02X}{b:02X}"

    return ""


@dataclass(frozen=True)
class Box:
    top: float = 0
    right: float = 0
    bottom: float = 0
    left: float = 0
    unit: str = "px"

    def is_zero(self) -> bool:
        return not (self.top or self.right or self.bottom or self.left)

    def css(self) -> str:
        parts = [self.top, self.right, self.bottom, self.left]
        return " ".join(f"{_fmt_number(p)}{self.unit}" for p in parts)


def _fmt_number(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def parse_box(value: object) -> Box:
    """Parse CSS shorthand like ``16px 8px`` into a four-sided box."""

    if not isinstance(value, str) or not value.strip():
        return Box()

    numbers: list[float] = []
    unit = "px"
    for part in value.split()[:4]:
        m = _LENGTH_RE.match(part)
        if not m:
            return Box()
        numbers.append(float(m.group(1)))
        if m.group(2):
            unit = m.group(2).lower()

    if len(numbers) == 1:
        t = r = b = l = numbers[0]
    elif len(numbers) == 2:
        t, r = numbers
        b, l = t, r
    elif len(numbers) == 3:
        t, r, b = numbers
        l = r
    else:
        t, r, b, l = numbers
    return Box(top=t, right=r, bottom=b, left=l, unit=unit)


def parse_px(value: object, default: int = 0) -> int:
    if isinstance(value, (int, float)):
        return int(value)
    if not isinstance(value, str):
        return default
    m = _LENGTH_RE.match(value.strip())
    if not m:
        return default
    return int(float(m.group(1)))


def extract_background_image(value: object) -> str:
    if not isinstance(value, str):
        return ""
    m = _URL_RE.search(value)
    return m.group(2).strip() if m else ""
