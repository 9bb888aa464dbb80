"""Element position lookup via injected JavaScript.

The page reports an element's bounding box as a ``"top:left"`` string;
:func:`parse_top_left` turns it into integer viewport coordinates nudged one
pixel inside the box so a mouse click lands on the element and not its edge.
"""

import math
import re

import structlog

from .errors import CoordinateParseError

logger = structlog.get_logger(__name__)

# Evaluated with the XPath as its argument.
TOP_LEFT_JS = """
(xpath) => {
    const element = document.evaluate(
        xpath, document, null, XPathResult.FIRST_ORDERED_NODE_TYPE, null
    ).singleNodeValue;
    if (!element) {
        return "";
    }
    const rect = element.getBoundingClientRect();
    return rect.top + ":" + rect.left;
}
"""

PIXEL_OFFSET = 1

# Plain decimal or exponent notation; no padding, underscores, NaN or Infinity.
NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_top_left(raw: str) -> tuple[int, int]:
    """Parse a ``"top:left"`` string into offset integer coordinates.

    Args:
        raw: Value returned by :data:`TOP_LEFT_JS`, e.g. ``"10.5:20"``

    Returns:
        tuple[int, int]: ``(top, left)``, each truncated and offset by one pixel

    Raises:
        CoordinateParseError: If the string does not hold exactly two numbers
    """
    parts = (raw or "").split(":")
    if len(parts) != 2:
        raise CoordinateParseError(f"expected 'top:left', got {raw!r}")

    bad = [part for part in parts if not NUMBER_RE.fullmatch(part)]
    if bad:
        logger.warning("coordinate_parse_failed", raw=raw, invalid=bad)
        raise CoordinateParseError(f"invalid coordinate {bad[0]!r} in {raw!r}")

    top = float(parts[0])
    left = float(parts[1])

    if not (math.isfinite(top) and math.isfinite(left)):
        raise CoordinateParseError(f"non-finite coordinate in {raw!r}")

    return int(top) + PIXEL_OFFSET, int(left) + PIXEL_OFFSET
