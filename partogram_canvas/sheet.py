from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image, ImageDraw, ImageFont

from .data_model import PartogramDocument
from .geometry import ChartGeometry, DEFAULT_GEOMETRY
from .renderer import (
    Circle,
    HEADER_BOXES,
    Polygon,
    Polyline,
    Rect,
    Shape,
    TABLE_ROWS,
    Text,
    VarietyMarker,
    observations_box,
    render,
    variety_glyph,
)

logger = logging.getLogger(__name__)

GRID_COLOR = (170, 170, 170)
BAND_COLOR = (60, 60, 60)
LABEL_FONT = 26

# Pillow text anchors for the renderer's anchor names
_ANCHORS = {"center": "mm", "w": "lm", "nw": "la"}


def _font(size: float):
    return ImageFont.load_default(size=max(1, int(round(size))))


def _w(width: float) -> int:
    return max(1, int(round(width)))


def _vx(g: ChartGeometry, x: float) -> float:
    return g.to_visual(x, 0.0)[0]


def _vy(g: ChartGeometry, y: float) -> float:
    return g.to_visual(0.0, y)[1]


def draw_grid_sheet(geometry: ChartGeometry = DEFAULT_GEOMETRY) -> Image.Image:
    """
    Plain printable sheet used when no scanned background is configured:
    hour columns, the three clinical bands and the table rows.
    """
    g = geometry
    img = Image.new("RGB", (int(g.canvas_w), int(g.canvas_h)), "white")
    draw = ImageDraw.Draw(img)
    label_font = _font(LABEL_FONT * g.scale)

    table_bottom = max(top + h for _, top, h, _ in TABLE_ROWS if top is not None)
    x0, x1 = _vx(g, g.grid_x_start), _vx(g, g.grid_x_end)

    # hour columns
    for i in range(g.num_columns + 1):
        x = _vx(g, g.column_left(i))
        draw.line([(x, _vy(g, g.dilation_top)), (x, _vy(g, table_bottom))], fill=GRID_COLOR, width=1)

    # dilation band, one row per centimetre
    for v in range(int(g.dilation_max) + 1):
        y = _vy(g, g.dilation_to_y(v))
        draw.line([(x0, y), (x1, y)], fill=GRID_COLOR, width=1)
        draw.text((x0 - 12, _vy(g, g.dilation_to_y(v) + g.dilation_unit_height / 2)),
                  str(v), fill="black", font=label_font, anchor="rm")

    # heart rate band, every 10 bpm
    for bpm in range(int(g.heart_rate_min), int(g.heart_rate_max) + 1, 10):
        y = _vy(g, g.heart_rate_to_y(bpm))
        draw.line([(x0, y), (x1, y)], fill=BAND_COLOR if bpm % 50 == 0 else GRID_COLOR, width=1)
        draw.text((x0 - 12, y), str(bpm), fill="black", font=label_font, anchor="rm")

    # contraction rows
    for slot in range(g.contraction_rows + 1):
        y = _vy(g, g.contraction_bottom - slot * g.contraction_row_height)
        draw.line([(x0, y), (x1, y)], fill=GRID_COLOR, width=1)

    # time and table rows
    row_edges = {g.time_real_top, g.time_register_top, g.time_register_top + g.time_row_height}
    row_edges.update(top for _, top, _, _ in TABLE_ROWS if top is not None)
    row_edges.add(table_bottom)
    for y_int in sorted(row_edges):
        y = _vy(g, y_int)
        draw.line([(x0, y), (x1, y)], fill=GRID_COLOR, width=1)

    for top, bottom in (
        (g.dilation_top, g.dilation_bottom),
        (g.heart_rate_top, g.heart_rate_bottom),
        (g.contraction_top, g.contraction_bottom),
    ):
        draw.rectangle([x0, _vy(g, top), x1, _vy(g, bottom)], outline=BAND_COLOR, width=2)

    for _, x, y, w, h, _ in HEADER_BOXES:
        (bx0, by0), (bx1, by1) = g.to_visual(x, y), g.to_visual(x + w, y + h)
        draw.line([(bx0, by1), (bx1, by1)], fill=GRID_COLOR, width=1)

    draw.rectangle(list(observations_box(g)), outline=BAND_COLOR, width=2)
    return img


def load_background(path: Path | str, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> Image.Image:
    """Open a scanned/printed sheet and bring it to canvas size."""
    g = geometry
    img = Image.open(path).convert("RGB")
    size = (int(g.canvas_w), int(g.canvas_h))
    if img.size != size:
        logger.info("background %s is %sx%s; resizing to %sx%s", path, *img.size, *size)
        img = img.resize(size, Image.Resampling.LANCZOS)
    return img


def _draw_text(img: Image.Image, draw: ImageDraw.ImageDraw, t: Text) -> None:
    font = _font(t.size)
    anchor = _ANCHORS.get(t.anchor, "mm")
    if not t.angle:
        draw.text((t.x, t.y), t.text, fill="black", font=font, anchor=anchor)
        return
    # Rotated labels: draw on a transparent tile, rotate it, paste centred.
    left, top, right, bottom = draw.textbbox((0, 0), t.text, font=font)
    tile = Image.new("RGBA", (int(right - left) + 4, int(bottom - top) + 4), (255, 255, 255, 0))
    ImageDraw.Draw(tile).text((2 - left, 2 - top), t.text, fill="black", font=font)
    tile = tile.rotate(t.angle, expand=True)
    img.paste(tile, (int(t.x - tile.width / 2), int(t.y - tile.height / 2)), tile)


def draw_shapes(img: Image.Image, shapes: Iterable[Shape]) -> None:
    draw = ImageDraw.Draw(img)
    for s in shapes:
        if isinstance(s, VarietyMarker):
            draw_shapes(img, variety_glyph(s))
        elif isinstance(s, Polyline):
            draw.line(list(s.points), fill=s.fill, width=_w(s.width), joint="curve")
        elif isinstance(s, Polygon):
            draw.polygon(list(s.points), fill=s.fill, outline=s.outline)
        elif isinstance(s, Circle):
            draw.ellipse([s.cx - s.r, s.cy - s.r, s.cx + s.r, s.cy + s.r],
                         fill=s.fill, outline=s.outline, width=_w(s.width))
        elif isinstance(s, Rect):
            draw.rectangle([s.x0, s.y0, s.x1, s.y1], fill=s.fill, outline=s.outline, width=_w(s.width))
        elif isinstance(s, Text):
            _draw_text(img, draw, s)


def render_sheet(
    document: PartogramDocument,
    background: Optional[Image.Image] = None,
    geometry: ChartGeometry = DEFAULT_GEOMETRY,
) -> Image.Image:
    """Printable sheet: background (or drawn grid) with every derived shape on top."""
    if background is None:
        img = draw_grid_sheet(geometry)
    else:
        img = background.convert("RGB").copy()
        size = (int(geometry.canvas_w), int(geometry.canvas_h))
        if img.size != size:
            img = img.resize(size, Image.Resampling.LANCZOS)
    draw_shapes(img, render(document, geometry))
    return img


def export_sheet(
    document: PartogramDocument,
    path: Path | str,
    *,
    background: Optional[Image.Image] = None,
    geometry: ChartGeometry = DEFAULT_GEOMETRY,
) -> Path:
    path = Path(path)
    img = render_sheet(document, background, geometry)
    img.save(path)
    logger.info("exported partogram sheet to %s", path)
    return path
