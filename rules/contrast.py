"""
FILE DESCRIPTION: Colour parsing and WCAG contrast arithmetic.
KEY FUNCTIONS/CLASSES: parse_color, to_hex, relative_luminance, contrast_ratio
"""

import re
from typing import Optional, Tuple

RGB = Tuple[int, int, int]

AA_NORMAL_TEXT = 4.5

NAMED_COLORS = {
    "white": (255, 255, 255),
    "black": (0, 0, 0),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "silver": (192, 192, 192),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "navy": (0, 0, 128),
    "teal": (0, 128, 128),
    "maroon": (128, 0, 0),
    "lime": (0, 255, 0),
    "aqua": (0, 255, 255),
    "fuchsia": (255, 0, 255),
    "olive": (128, 128, 0),
    "darkgray": (169, 169, 169),
    "lightgray": (211, 211, 211),
}

_HEX_RE = re.compile(r"^#([0-9a-f]{3,8})$")
_RGB_RE = re.compile(r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")
_IMPORTANT_RE = re.compile(r"\s*!\s*important\s*$")


# === PARSING ===

def _named(expr: str):
    if expr == "transparent":
        return None, True
    if expr in NAMED_COLORS:
        return NAMED_COLORS[expr], True
    return None, False


def _hex(expr: str):
    match = _HEX_RE.match(expr)
    if not match:
        return None, False
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    elif len(digits) not in (6, 8):
        # #rgba and 5/7 digit forms are not colours we recognise
        return None, True
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)), True


def _rgb(expr: str):
    match = _RGB_RE.match(expr)
    if not match:
        return None, False
    channels = tuple(min(255, int(v)) for v in match.groups())
    return channels, True


# First matcher that claims the expression decides the result
_MATCHERS = (_named, _hex, _rgb)


def parse_color(expr) -> Optional[RGB]:
    """
    Parse a CSS colour expression into an (r, g, b) tuple.
    Returns None for transparent, unknown or malformed values.
    """
    if not expr or not isinstance(expr, str):
        return None
    expr = _IMPORTANT_RE.sub("", expr.strip().lower()).strip()
    for matcher in _MATCHERS:
        rgb, claimed = matcher(expr)
        if claimed:
            return rgb
    return None


def to_hex(rgb: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


# === LUMINANCE / CONTRAST ===

def _linearize(channel: int) -> float:
    v = channel / 255
    if v <= 0.03928:
        return v / 12.92
    return ((v + 0.055) / 1.055) ** 2.4


def relative_luminance(rgb: RGB) -> float:
    r, g, b = (_linearize(c) for c in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(a: RGB, b: RGB) -> float:
    """WCAG contrast ratio, 1.0 to 21.0. Argument order does not matter."""
    la, lb = relative_luminance(a), relative_luminance(b)
    lighter, darker = max(la, lb), min(la, lb)
    return (lighter + 0.05) / (darker + 0.05)
