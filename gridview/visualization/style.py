"""Visual style constants for single-line diagrams."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict

# ---------------------------------------------------------------------------
# Line weights
# ---------------------------------------------------------------------------
STROKE_WIDTH = 2.0          # connections, symbol bodies
STROKE_EMPHASIS = 3.0       # hovered / highlighted elements
OUTLINE_WIDTH = 1.0         # node outlines
OUTLINE_COLOR = "#000000"
SYMBOL_BODY_FILL = "#FFFFFF"

# ---------------------------------------------------------------------------
# Node symbols (model units)
# ---------------------------------------------------------------------------
BUS_LENGTH = 60.0
BUS_THICKNESS = 10.0
JUNCTION_RADIUS = 6.0
NODE_RADIUS = 4.0

# ---------------------------------------------------------------------------
# Connection symbols (model units, measured along the segment)
# ---------------------------------------------------------------------------
SYMBOL_GAP = 10.0               # half-length of the break at the midpoint
TRANSFORMER_RADIUS = 10.0
BREAKER_WIDTH = 20.0
BREAKER_HEIGHT = 12.0
BREAKER_STRIKE = 5.0            # half-extent of the open-state diagonal
DISCONNECTOR_TICK = 6.0         # half-length of the perpendicular tick
DISCONNECTOR_SWING = (5.0, 10.0)  # (along, across) end of the open blade

# ---------------------------------------------------------------------------
# Meters
# ---------------------------------------------------------------------------
METER_RADIUS = 12.0
METER_OFFSET = 20.0             # left of the anchor for In, right for Out
METER_MARK_SIZE = 10.0
METER_VALUE_FONT = 10.0
METER_NAME_FONT = 8.0
METER_VALUE_COLOR = "#333333"
METER_NAME_COLOR = "#666666"

# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------
LABEL_FONT_SIZE = 12.0
LABEL_GAP = 4.0                 # between a symbol's bounding box and its label
LABEL_LINE_SPACING = 2.0
LABEL_COLOR = "#000000"
CHAR_WIDTH_RATIO = 0.6          # average glyph width / font size
FONT_FAMILY = "Arial, Helvetica, sans-serif"

# ---------------------------------------------------------------------------
# Overlays
# ---------------------------------------------------------------------------
SELECTION_COLOR = "#2563EB"
SELECTION_RING_RADIUS = 12.0
SELECTION_DASH = (4.0, 2.0)
WORK_ZONE_COLOR = "#FB8C00"
WORK_ZONE_WIDTH = 3.0
WORK_ZONE_DASH = (10.0, 5.0)
WORK_ZONE_FONT = 14.0

# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------
CANVAS_WIDTH = 1000
CANVAS_HEIGHT = 600
CANVAS_BACKGROUND = "#F9FAFB"


# ---------------------------------------------------------------------------
# Colour classes
# ---------------------------------------------------------------------------

class ColorClass(Enum):
    """Exactly one colour class applies to an element per render pass."""
    NORMAL = "normal"
    INACTIVE = "inactive"
    FAULT = "fault"
    MAINTENANCE = "maintenance"
    LOAD_LOW = "load_low"
    LOAD_MEDIUM = "load_medium"
    LOAD_HIGH = "load_high"


@dataclass(frozen=True)
class ColorSpec:
    stroke: str
    fill: str


PALETTE: Dict[ColorClass, ColorSpec] = {
    ColorClass.NORMAL: ColorSpec("#388E3C", "#388E3C"),
    ColorClass.INACTIVE: ColorSpec("#9E9E9E", "#9E9E9E"),
    ColorClass.FAULT: ColorSpec("#D32F2F", "#D32F2F"),
    ColorClass.MAINTENANCE: ColorSpec("#F57C00", "#F57C00"),
    ColorClass.LOAD_LOW: ColorSpec("#388E3C", "#C8E6C9"),
    ColorClass.LOAD_MEDIUM: ColorSpec("#FBC02D", "#FFF9C4"),
    ColorClass.LOAD_HIGH: ColorSpec("#D32F2F", "#FFCDD2"),
}

LEGEND_LABELS: Dict[ColorClass, str] = {
    ColorClass.NORMAL: "Energized",
    ColorClass.INACTIVE: "De-energized",
    ColorClass.FAULT: "Fault",
    ColorClass.MAINTENANCE: "Maintenance",
    ColorClass.LOAD_LOW: "Low load",
    ColorClass.LOAD_MEDIUM: "Medium load",
    ColorClass.LOAD_HIGH: "High load",
}
