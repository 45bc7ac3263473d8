import re
import logging
from typing import List

import svgwrite
from svgwrite.data.colors import colornames

logger = logging.getLogger(__name__)

SWATCH_SIZE = 64
SWATCH_GAP = 12
LABEL_HEIGHT = 28
FALLBACK_FILL = "#d9d9d9"

HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{3})\b")


def swatch_fill(color: str) -> str:
    # "Blush Pink (#F4C2C2)" -> "#F4C2C2", "Light Pink" -> "lightpink", "Sage Green" -> fallback
    match = HEX_COLOR.search(color)
    if match:
        return match.group(0)
    keyword = color.replace(" ", "").lower()
    if keyword in colornames:
        return keyword
    return FALLBACK_FILL


def swatch_label(color: str) -> str:
    label = HEX_COLOR.sub("", color).strip(" ()-")
    return label or color.strip()


def create_palette_svg(palette: List[str]) -> str:
    logger.info(f"Rendering palette swatches for {len(palette)} colour(s)")
    if not palette:
        return '<svg width="200" height="40" xmlns="http://www.w3.org/2000/svg"><text x="10" y="25" fill="gray">No palette</text></svg>'

    try:
        width = len(palette) * (SWATCH_SIZE + SWATCH_GAP) + SWATCH_GAP
        height = SWATCH_SIZE + LABEL_HEIGHT + SWATCH_GAP

        # debug=False: colour names from the model are not always SVG keywords
        dwg = svgwrite.Drawing(profile="tiny", size=(f"{width}px", f"{height}px"), debug=False)

        for index, color in enumerate(palette):
            x = SWATCH_GAP + index * (SWATCH_SIZE + SWATCH_GAP)
            dwg.add(dwg.rect(
                insert=(x, SWATCH_GAP),
                size=(SWATCH_SIZE, SWATCH_SIZE),
                rx=10, ry=10,
                fill=swatch_fill(color),
                stroke="#e5e5e5",
                stroke_width=1,
            ))
            dwg.add(dwg.text(
                swatch_label(color)[:14],
                insert=(x, SWATCH_GAP + SWATCH_SIZE + 16),
                fill="#064e3b",
                font_size="10px",
            ))

        return dwg.tostring()
    except Exception as e:
        logger.error(f"Error while rendering palette swatches: {e}", exc_info=True)
        return '<svg width="200" height="40" xmlns="http://www.w3.org/2000/svg"><text x="10" y="25" fill="red">Palette unavailable</text></svg>'
