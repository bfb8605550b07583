from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .algorithms import Segment, project_reference_lines
from .data_model import ContractionType, PartogramDocument, PointType
from .geometry import ChartGeometry, DEFAULT_GEOMETRY

XY = Tuple[float, float]

# marker sizes and stroke widths in internal units (scaled on projection)
DILATION_MARKER_HALF = 30.0
STATION_MARKER_RADIUS = 25.0
STATION_STROKE = 6.0
VARIETY_MARKER_SIZE = 50.0
HEART_RATE_DOT_RADIUS = 10.0
HEART_RATE_STROKE = 4.0
ALERT_STROKE = 6.0
ACTION_STROKE = 8.0
BLOCK_OVERLAP = 1.0

HEADER_FONT = 40.0
START_DATE_FONT = 30.0
TABLE_FONT = 22.0
OBSERVATIONS_FONT = 24.0

# (field, x, y, width, height, font size) in internal units
HEADER_BOXES = (
    ("date", 350, 830, 250, 60, HEADER_FONT),
    ("record_id", 1650, 830, 400, 60, HEADER_FONT),
    ("name", 380, 910, 1400, 60, HEADER_FONT),
    ("age", 2000, 910, 200, 60, HEADER_FONT),
    ("lmp", 350, 1000, 350, 60, HEADER_FONT),
    ("edd", 850, 1000, 330, 60, HEADER_FONT),
    ("gestational_age", 1420, 1000, 320, 60, HEADER_FONT),
    ("ultrasound", 1950, 1000, 300, 60, HEADER_FONT),
    ("parity", 480, 1080, 700, 60, HEADER_FONT),
    ("blood_type", 1450, 1080, 300, 60, HEADER_FONT),
    ("baby_name", 1750, 1080, 500, 60, HEADER_FONT),
    ("start_date", 450, 1830, 300, 60, START_DATE_FONT),
)

# (field, top, height, rotated) for the per-hour table rows; None = from geometry
TABLE_ROWS = (
    ("real_time", None, None, False),
    ("register_hour", None, None, False),
    ("amniotic_fluid", 2994.665, 61.5, False),
    ("liquor", 3056.164, 61.5, False),
    ("oxytocin", 3117.664, 61.5, False),
    ("medications", 3179.163, 553.066, True),
    ("examiner", 3732.229, 160.037, True),
)

OBSERVATIONS_TOP = 2994.0
OBSERVATIONS_BOTTOM = 3892.0
OBSERVATIONS_GAP = 20.0
OBSERVATIONS_RIGHT_MARGIN = 50.0


# ---------- shapes (visual / canvas space) ----------

@dataclass(frozen=True)
class Polyline:
    points: Tuple[XY, ...]
    width: float
    fill: str = "black"
    role: str = ""


@dataclass(frozen=True)
class Polygon:
    points: Tuple[XY, ...]
    fill: str = "black"
    outline: Optional[str] = None
    width: float = 0.0
    role: str = ""


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    fill: Optional[str] = "black"
    outline: Optional[str] = None
    width: float = 0.0
    role: str = ""


@dataclass(frozen=True)
class Rect:
    x0: float
    y0: float
    x1: float
    y1: float
    fill: Optional[str] = "white"
    outline: Optional[str] = "black"
    width: float = 1.0
    role: str = ""


@dataclass(frozen=True)
class VarietyMarker:
    cx: float
    cy: float
    size: float
    variety: str
    rotation: int = 0
    role: str = "station"


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    size: float
    anchor: str = "center"  # center | w | nw
    angle: int = 0
    role: str = ""


Shape = Union[Polyline, Polygon, Circle, Rect, VarietyMarker, Text]


def variety_glyph(m: VarietyMarker) -> List[Shape]:
    """
    Primitive shapes for a presentation variety: a ring, the variety code and
    a pointer from the centre towards `rotation` (0 = up, clockwise).
    """
    r = m.size / 2
    a = math.radians(m.rotation)
    tip = (m.cx + r * math.sin(a), m.cy - r * math.cos(a))
    return [
        Circle(m.cx, m.cy, r, fill="white", outline="black", width=max(1.0, m.size / 12), role=m.role),
        Polyline(((m.cx, m.cy), tip), max(1.0, m.size / 10), role=m.role),
        Text(m.cx, m.cy, m.variety, m.size * 0.45, anchor="center", role=m.role),
    ]


def _project(g: ChartGeometry, pts: Sequence[XY]) -> Tuple[XY, ...]:
    """Internal -> visual for a batch of points."""
    if not pts:
        return ()
    arr = np.asarray(pts, dtype=float)
    vx, vy = g.to_visual(arr[:, 0], arr[:, 1])
    return tuple((float(a), float(b)) for a, b in zip(vx, vy))


def _project_one(g: ChartGeometry, x: float, y: float) -> XY:
    vx, vy = g.to_visual(x, y)
    return (float(vx), float(vy))


# ---------- layers ----------

def marker_center(g: ChartGeometry, x: float, value: float) -> XY:
    """Internal position of a dilation/station marker: mid-column, mid-cell."""
    return (g.column_center(x), g.dilation_to_y(value) + g.dilation_unit_height / 2)


def _segment_line(g: ChartGeometry, seg: Segment, width: float, role: str) -> Polyline:
    pts = [
        (g.column_center(seg.x0), g.dilation_to_y(seg.y0)),
        (g.column_center(seg.x1), g.dilation_to_y(seg.y1)),
    ]
    return Polyline(_project(g, pts), width * g.scale, role=role)


def reference_line_shapes(doc: PartogramDocument, g: ChartGeometry) -> List[Shape]:
    lines = project_reference_lines(doc.points, doc.active_phase_index)
    if lines is None:
        return []
    return [
        _segment_line(g, lines.alert, ALERT_STROKE, "alert_line"),
        _segment_line(g, lines.action, ACTION_STROKE, "action_line"),
    ]


def dilation_shapes(doc: PartogramDocument, g: ChartGeometry) -> List[Shape]:
    s = DILATION_MARKER_HALF
    out: List[Shape] = []
    for p in doc.points_of(PointType.DILATION):
        cx, cy = marker_center(g, p.x, p.y)
        tri = _project(g, [(cx, cy - s), (cx - s, cy + s), (cx + s, cy + s)])
        out.append(Polygon(tri, fill="black", role="dilation"))
    return out


def station_shapes(doc: PartogramDocument, g: ChartGeometry) -> List[Shape]:
    out: List[Shape] = []
    for p in doc.points_of(PointType.STATION):
        cx, cy = _project_one(g, *marker_center(g, p.x, p.y))
        if p.variety:
            out.append(VarietyMarker(cx, cy, VARIETY_MARKER_SIZE * g.scale, p.variety, p.rotation))
        else:
            out.append(Circle(
                cx, cy, STATION_MARKER_RADIUS * g.scale,
                fill="white", outline="black", width=STATION_STROKE * g.scale, role="station",
            ))
    return out


def heart_rate_shapes(doc: PartogramDocument, g: ChartGeometry) -> List[Shape]:
    pts = doc.points_of(PointType.HEART_RATE)
    if not pts:
        return []
    projected = _project(g, [(g.column_left(p.x), g.heart_rate_to_y(p.y)) for p in pts])
    out: List[Shape] = []
    if len(projected) >= 2:
        out.append(Polyline(projected, HEART_RATE_STROKE * g.scale, role="heart_rate_trace"))
    r = HEART_RATE_DOT_RADIUS * g.scale
    for cx, cy in projected:
        out.append(Circle(cx, cy, r, fill="black", role="heart_rate"))
    return out


def contraction_shapes(doc: PartogramDocument, g: ChartGeometry) -> List[Shape]:
    out: List[Shape] = []
    for b in sorted(doc.contraction_blocks, key=lambda b: (b.x, b.slot)):
        x0 = g.column_left(b.x)
        y0 = g.contraction_slot_top(b.slot)
        x1 = x0 + g.column_width
        y1 = y0 + g.contraction_row_height + BLOCK_OVERLAP
        (vx0, vy0), (vx1, vy1) = _project(g, [(x0, y0), (x1, y1)])
        role = f"contraction_{b.type.value}"
        if b.type == ContractionType.STRONG:
            out.append(Rect(vx0, vy0, vx1, vy1, fill="black", outline="black", width=1.0, role=role))
            continue
        out.append(Rect(vx0, vy0, vx1, vy1, fill="white", outline="black", width=1.0, role=role))
        if b.type == ContractionType.WEAK:
            # diagonal cross between the corners
            out.append(Polyline(((vx0, vy0), (vx1, vy1)), 2.0, role=role))
            out.append(Polyline(((vx1, vy0), (vx0, vy1)), 2.0, role=role))
        else:
            # lower-left half filled
            out.append(Polygon(((vx0, vy0), (vx0, vy1), (vx1, vy1)), fill="black", role=role))
    return out


def text_shapes(doc: PartogramDocument, g: ChartGeometry) -> List[Shape]:
    out: List[Shape] = []

    for name, x, y, w, h, font in HEADER_BOXES:
        value = getattr(doc.header, name, "")
        if not value:
            continue
        if name == "start_date":
            tx, ty = _project_one(g, x + w / 2, y + h / 2)
            out.append(Text(tx, ty, value, font * g.scale, anchor="center", role="header"))
        else:
            tx, ty = _project_one(g, x, y + h / 2)
            out.append(Text(tx, ty, value, font * g.scale, anchor="w", role="header"))

    for name, top, height, rotated in TABLE_ROWS:
        if name == "real_time":
            top, height = g.time_real_top, g.time_row_height
        elif name == "register_hour":
            top, height = g.time_register_top, g.time_row_height
        for col in doc.table_data[:g.num_columns]:
            value = (getattr(col, name, "") or "").strip()
            if not value:
                continue
            tx, ty = _project_one(g, g.column_center(col.hour_index), top + height / 2)
            out.append(Text(
                tx, ty, value, TABLE_FONT * g.scale,
                anchor="center", angle=90 if rotated else 0, role="table",
            ))

    if doc.observations:
        tx, ty = _project_one(g, g.grid_x_end + OBSERVATIONS_GAP, OBSERVATIONS_TOP)
        out.append(Text(tx + 10, ty + 10, doc.observations, OBSERVATIONS_FONT * g.scale,
                        anchor="nw", role="observations"))
    return out


def observations_box(g: ChartGeometry) -> Tuple[float, float, float, float]:
    """Visual-space box reserved for the observations text."""
    x0, y0 = _project_one(g, g.grid_x_end + OBSERVATIONS_GAP, OBSERVATIONS_TOP)
    _, y1 = _project_one(g, 0.0, OBSERVATIONS_BOTTOM)
    return (x0, y0, g.canvas_w - OBSERVATIONS_RIGHT_MARGIN, y1)


def render(
    document: PartogramDocument,
    geometry: ChartGeometry = DEFAULT_GEOMETRY,
    *,
    include_text: bool = True,
) -> List[Shape]:
    """
    Derive every drawable shape for the document in visual (canvas) space.
    Order is back-to-front.
    """
    g = geometry
    shapes: List[Shape] = []
    shapes += reference_line_shapes(document, g)
    shapes += dilation_shapes(document, g)
    shapes += station_shapes(document, g)
    shapes += heart_rate_shapes(document, g)
    shapes += contraction_shapes(document, g)
    if include_text:
        shapes += text_shapes(document, g)
    return shapes
