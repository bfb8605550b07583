from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .geometry import ChartGeometry, DEFAULT_GEOMETRY

logger = logging.getLogger(__name__)

# quarter-hour resolution for heart-rate clicks
SUB_HOUR_DIVISIONS = 4


class Zone(str, Enum):
    DILATION = "dilation"        # dilation / station band
    HEART_RATE = "heart_rate"
    CONTRACTION = "contraction"
    NONE = "none"


@dataclass(frozen=True)
class ZoneHit:
    zone: Zone
    hour_index: int
    sub_hour_index: int
    fractional_x: float
    # internal-space position of the click
    x: float
    y: float
    # contraction band only
    slot: Optional[int] = None


def classify(x: float, y: float, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> Optional[ZoneHit]:
    """
    Classify an internal-space point.

    Returns None when the point is outside the hour grid. Points inside the grid
    but in no clinical band (or on the top edge of the contraction band) give a
    hit with Zone.NONE.
    """
    g = geometry
    if x < g.grid_x_start or x > g.grid_x_end:
        return None

    col_raw = (x - g.grid_x_start) / g.column_width
    hour_index = int(math.floor(col_raw))
    if hour_index < 0 or hour_index >= g.num_columns:
        return None

    sub_hour_index = int(math.floor((col_raw - hour_index) * SUB_HOUR_DIVISIONS))
    sub_hour_index = min(sub_hour_index, SUB_HOUR_DIVISIONS - 1)
    fractional_x = hour_index + sub_hour_index / SUB_HOUR_DIVISIONS

    def hit(zone: Zone, slot: Optional[int] = None) -> ZoneHit:
        return ZoneHit(zone, hour_index, sub_hour_index, fractional_x, x, y, slot)

    if g.dilation_top <= y <= g.dilation_bottom:
        return hit(Zone.DILATION)

    if g.heart_rate_top <= y <= g.heart_rate_bottom:
        return hit(Zone.HEART_RATE)

    if g.contraction_top <= y <= g.contraction_bottom:
        slot = int(math.floor((g.contraction_bottom - y) / g.contraction_row_height))
        if 0 <= slot < g.contraction_rows:
            return hit(Zone.CONTRACTION, slot)
        logger.debug("contraction click outside slot range: y=%.3f slot=%d", y, slot)

    return hit(Zone.NONE)
