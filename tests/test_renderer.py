import pytest

from partogram_canvas.data_model import ContractionBlock, ContractionType, PartogramDocument, Point, PointType
from partogram_canvas.renderer import (
    Circle,
    Polygon,
    Polyline,
    Rect,
    Text,
    VarietyMarker,
    marker_center,
    observations_box,
    render,
    variety_glyph,
)


def by_role(shapes, role):
    return [s for s in shapes if s.role == role]


def approx_xy(xy):
    return (pytest.approx(xy[0]), pytest.approx(xy[1]))


def test_empty_document_has_only_table_text(g, document):
    shapes = render(document, g)
    assert all(isinstance(s, Text) and s.role == "table" for s in shapes)
    assert render(document, g, include_text=False) == []


def test_marker_center_is_mid_cell(g):
    cx, cy = marker_center(g, 2, 3)
    assert cx == pytest.approx(g.column_center(2))
    assert cy == pytest.approx(g.dilation_to_y(3) + g.dilation_unit_height / 2)


def test_dilation_triangle(g):
    doc = PartogramDocument(points=[Point(2, 3, PointType.DILATION)])
    (tri,) = by_role(render(doc, g, include_text=False), "dilation")
    assert isinstance(tri, Polygon)
    assert len(tri.points) == 3
    cx, cy = g.to_visual(*marker_center(g, 2, 3))
    xs = [p[0] for p in tri.points]
    assert sum(xs) / 3 == pytest.approx(cx)
    # apex above the centre
    assert tri.points[0][1] < cy


def test_station_circle_or_variety(g):
    doc = PartogramDocument(points=[
        Point(2, 6, PointType.STATION),
        Point(3, 5, PointType.STATION, variety="O", rotation=45),
    ])
    shapes = by_role(render(doc, g, include_text=False), "station")
    circle = next(s for s in shapes if isinstance(s, Circle))
    marker = next(s for s in shapes if isinstance(s, VarietyMarker))
    assert (circle.cx, circle.cy) == approx_xy(g.to_visual(*marker_center(g, 2, 6)))
    assert circle.fill == "white"
    assert (marker.variety, marker.rotation) == ("O", 45)
    assert (marker.cx, marker.cy) == approx_xy(g.to_visual(*marker_center(g, 3, 5)))


def test_heart_rate_polyline_needs_two_points(g):
    one = PartogramDocument(points=[Point(1.25, 140, PointType.HEART_RATE)])
    shapes = render(one, g, include_text=False)
    assert by_role(shapes, "heart_rate_trace") == []
    (dot,) = by_role(shapes, "heart_rate")
    assert (dot.cx, dot.cy) == approx_xy(g.to_visual(g.column_left(1.25), g.heart_rate_to_y(140)))

    two = PartogramDocument(points=[
        Point(2.5, 150, PointType.HEART_RATE),
        Point(1.25, 140, PointType.HEART_RATE),
    ])
    shapes = render(two, g, include_text=False)
    (trace,) = by_role(shapes, "heart_rate_trace")
    assert isinstance(trace, Polyline)
    # ordered by time
    assert trace.points[0][0] < trace.points[1][0]
    assert len(by_role(shapes, "heart_rate")) == 2


def test_heart_rate_trace_points_are_plain_floats(g):
    doc = PartogramDocument(points=[
        Point(1.25, 140, PointType.HEART_RATE),
        Point(2.5, 150, PointType.HEART_RATE),
        Point(3, 120, PointType.HEART_RATE),
    ])
    (trace,) = by_role(render(doc, g, include_text=False), "heart_rate_trace")
    assert isinstance(trace.points, tuple)
    for p, (x, y) in zip(doc.points, trace.points):
        assert type(x) is float and type(y) is float
        assert (x, y) == approx_xy(g.to_visual(g.column_left(p.x), g.heart_rate_to_y(p.y)))


def test_contraction_blocks(g):
    doc = PartogramDocument(contraction_blocks=[
        ContractionBlock(1, 0, ContractionType.STRONG),
        ContractionBlock(1, 1, ContractionType.MODERATE),
        ContractionBlock(1, 2, ContractionType.WEAK),
    ])
    shapes = render(doc, g, include_text=False)

    (strong,) = by_role(shapes, "contraction_strong")
    assert isinstance(strong, Rect) and strong.fill == "black"
    assert (strong.x0, strong.y0) == approx_xy(g.to_visual(g.column_left(1), g.contraction_slot_top(0)))
    assert (strong.x1, strong.y1) == approx_xy(
        g.to_visual(g.column_left(1) + g.column_width, g.contraction_bottom + 1)
    )

    moderate = by_role(shapes, "contraction_moderate")
    assert [type(s) for s in moderate] == [Rect, Polygon]

    weak = by_role(shapes, "contraction_weak")
    assert [type(s) for s in weak] == [Rect, Polyline, Polyline]
    assert weak[0].fill == "white"


def test_reference_lines(g):
    doc = PartogramDocument(points=[Point(2, 3, PointType.DILATION)], active_phase_index=2)
    shapes = render(doc, g, include_text=False)
    (alert,) = by_role(shapes, "alert_line")
    (action,) = by_role(shapes, "action_line")
    assert alert.points[0] == approx_xy(g.to_visual(g.column_center(2), g.dilation_to_y(3)))
    assert alert.points[1] == approx_xy(g.to_visual(g.column_center(9), g.dilation_to_y(10)))
    assert action.points[0] == approx_xy(g.to_visual(g.column_center(6), g.dilation_to_y(3)))
    assert action.width > alert.width


def test_no_reference_lines_without_active_phase(g):
    doc = PartogramDocument(points=[Point(2, 3, PointType.DILATION)])
    assert by_role(render(doc, g), "alert_line") == []


def test_text_layers(g, document):
    document.header.name = "MARIA"
    document.table_data[3].medications = "OCITOCINA"
    document.observations = "SEM INTERCORRENCIAS"
    shapes = render(document, g)

    (name,) = [s for s in by_role(shapes, "header") if s.text == "MARIA"]
    assert name.anchor == "w"

    (med,) = [s for s in by_role(shapes, "table") if s.text == "OCITOCINA"]
    assert med.angle == 90
    assert med.x == pytest.approx(g.to_visual(g.column_center(3), 0)[0])

    (obs,) = by_role(shapes, "observations")
    x0, y0, x1, y1 = observations_box(g)
    assert x0 <= obs.x <= x1 and y0 <= obs.y <= y1


def test_variety_glyph_pointer(g):
    m = VarietyMarker(100.0, 200.0, 50.0, "O", 90)
    ring, pointer, label = variety_glyph(m)
    assert isinstance(ring, Circle) and ring.r == pytest.approx(25.0)
    assert pointer.points[1] == approx_xy((125.0, 200.0))
    assert label.text == "O"
