import pytest

from partogram_canvas import algorithms as alg
from partogram_canvas.data_model import ContractionBlock, ContractionType, Point, PointType
from partogram_canvas.session import (
    ClickResult,
    ContractionMenu,
    DilationMenu,
    NO_MENU,
    PartogramSession,
    StationMenu,
    Tool,
    format_blood_type,
)

from conftest import contraction_slot_y, dilation_cell_y


def hr_x(g, hour, fraction):
    return g.column_left(hour) + g.column_width * fraction


def confirm_dilation_at(session, hour, value):
    g = session.geometry
    session.set_tool(Tool.DILATION)
    assert session.click_internal(g.column_center(hour), dilation_cell_y(g, value)) == ClickResult.MENU_OPENED
    return session.confirm_dilation(value)


# ---------- dilation ----------

def test_dilation_click_opens_seeded_menu(session, g):
    r = session.click_internal(g.column_center(3), dilation_cell_y(g, 7))
    assert r == ClickResult.MENU_OPENED
    assert session.menu == DilationMenu(hour_index=3, seed=7)
    assert session.document.points == []


def test_confirm_dilation_twice_keeps_one_point(session):
    assert confirm_dilation_at(session, 3, 7).accepted
    assert confirm_dilation_at(session, 3, 7).accepted
    assert session.document.points == [Point(x=3, y=7, type=PointType.DILATION)]
    assert session.menu == NO_MENU
    assert session.dirty


def test_confirm_dilation_none_removes_point(session, g):
    confirm_dilation_at(session, 2, 4)
    session.click_internal(g.column_center(2), dilation_cell_y(g, 4))
    assert session.confirm_dilation(None).accepted
    assert session.document.points_of(PointType.DILATION) == []


def test_confirm_out_of_range_keeps_menu_open(session, g):
    session.click_internal(g.column_center(2), dilation_cell_y(g, 4))
    r = session.confirm_dilation(12)
    assert not r.accepted
    assert isinstance(session.menu, DilationMenu)
    assert session.document.points == []


def test_confirm_without_menu_is_rejected(session):
    assert session.confirm_dilation(5) == alg.Rejected("menu_not_open", 5)
    assert session.confirm_station(0) == alg.Rejected("menu_not_open", 0)
    assert session.confirm_contractions(1, 0, 0) is None
    assert session.document.points == []


def test_other_tools_open_dilation_menu(session, g):
    session.set_tool(Tool.HEART_RATE)
    assert session.click_internal(g.column_center(1), dilation_cell_y(g, 5)) == ClickResult.MENU_OPENED
    assert isinstance(session.menu, DilationMenu)
    assert session.tool == Tool.DILATION


def test_cancel_closes_without_mutation(session, g):
    session.click_internal(g.column_center(1), dilation_cell_y(g, 5))
    session.cancel()
    assert session.menu == NO_MENU
    assert session.document.points == []
    assert not session.dirty


# ---------- station ----------

@pytest.mark.parametrize("station,y", [(-3, 9), (0, 6), (5, 1)])
def test_station_is_stored_on_dilation_axis(session, g, station, y):
    session.set_tool(Tool.STATION)
    session.click_internal(g.column_center(4), dilation_cell_y(g, 6))
    assert isinstance(session.menu, StationMenu)
    assert session.menu.seed == 0
    assert session.confirm_station(station).accepted
    assert session.document.points == [Point(x=4, y=y, type=PointType.STATION)]


def test_station_variety_and_rotation(session, g):
    session.set_tool(Tool.STATION)
    session.click_internal(g.column_center(4), dilation_cell_y(g, 6))
    session.confirm_station(1, "O", 90)
    p = session.document.point_at(4, PointType.STATION)
    assert (p.variety, p.rotation) == ("O", 90)

    # reopening carries the current variety
    session.click_internal(g.column_center(4), dilation_cell_y(g, 6))
    assert session.menu.variety == "O"
    assert session.menu.rotation == 90

    session.confirm_station(1, "P", 90)
    p = session.document.point_at(4, PointType.STATION)
    assert (p.variety, p.rotation) == ("P", 0)


def test_station_invalid_variety_is_dropped(session, g):
    session.set_tool(Tool.STATION)
    session.click_internal(g.column_center(4), dilation_cell_y(g, 6))
    session.confirm_station(2, "XX", 33)
    p = session.document.point_at(4, PointType.STATION)
    assert (p.variety, p.rotation) == (None, 0)


def test_station_out_of_domain(session, g):
    session.set_tool(Tool.STATION)
    session.click_internal(g.column_center(4), dilation_cell_y(g, 6))
    assert session.confirm_station(6) == alg.Rejected("out_of_domain", 6)
    assert session.document.points == []


# ---------- heart rate ----------

def test_heart_rate_click_upserts(session, g):
    session.set_tool(Tool.HEART_RATE)
    r = session.click_internal(hr_x(g, 5, 0.3), g.heart_rate_to_y(142))
    assert r == ClickResult.MUTATED
    assert session.document.points == [Point(x=5.25, y=140, type=PointType.HEART_RATE)]

    session.click_internal(hr_x(g, 5, 0.4), g.heart_rate_to_y(150))
    assert session.document.points == [Point(x=5.25, y=150, type=PointType.HEART_RATE)]


def test_heart_rate_click_needs_heart_rate_tool(session, g):
    session.set_tool(Tool.DILATION)
    assert session.click_internal(hr_x(g, 5, 0.3), g.heart_rate_to_y(140)) == ClickResult.IGNORED
    assert session.document.points == []


def test_heart_rate_readings(session):
    results = session.set_heart_rate_readings(2, [(140, 15), (200, 30), (130, 75)])
    assert [r.accepted for r in results] == [True, False, True]
    assert session.heart_rate_readings(2) == [(140, 15), (130, 59)]


# ---------- contractions ----------

def test_contraction_click_opens_menu_with_counts(session, g):
    session.document.contraction_blocks = [
        ContractionBlock(6, 0, ContractionType.STRONG),
        ContractionBlock(6, 1, ContractionType.WEAK),
    ]
    r = session.click_internal(g.column_center(6), contraction_slot_y(g, 3))
    assert r == ClickResult.MENU_OPENED
    assert session.menu == ContractionMenu(hour_index=6, weak=1, moderate=0, strong=1)
    assert session.tool == Tool.CONTRACTION


def test_contraction_menu_opens_for_any_brush(session, g):
    session.set_contraction_brush("weak")
    session.click_internal(g.column_center(2), contraction_slot_y(g, 0))
    assert isinstance(session.menu, ContractionMenu)
    session.cancel()
    session.set_contraction_brush(ContractionType.STRONG)
    session.click_internal(g.column_center(2), contraction_slot_y(g, 0))
    assert isinstance(session.menu, ContractionMenu)


def test_confirm_contractions_packs_column(session, g):
    session.click_internal(g.column_center(3), contraction_slot_y(g, 0))
    packed = session.confirm_contractions(weak=5, moderate=0, strong=3)
    assert packed.total_dropped == 3
    blocks = session.document.blocks_at(3)
    assert [b.type for b in blocks] == [ContractionType.STRONG] * 3 + [ContractionType.WEAK] * 2
    assert session.menu == NO_MENU


# ---------- eraser ----------

def test_eraser_dilation_band_removes_both_markers(session, g):
    session.document.points = [
        Point(3, 5, PointType.DILATION),
        Point(3, 6, PointType.STATION),
        Point(4, 6, PointType.DILATION),
    ]
    session.set_tool(Tool.ERASER)
    assert session.click_internal(g.column_center(3), dilation_cell_y(g, 2)) == ClickResult.MUTATED
    assert session.document.points == [Point(4, 6, PointType.DILATION)]
    assert session.menu == NO_MENU


def test_eraser_heart_rate(session, g):
    session.document.points = [Point(5.25, 140, PointType.HEART_RATE), Point(5.5, 140, PointType.HEART_RATE)]
    session.set_tool(Tool.ERASER)
    assert session.click_internal(hr_x(g, 5, 0.3), g.heart_rate_to_y(100)) == ClickResult.MUTATED
    assert session.document.points == [Point(5.5, 140, PointType.HEART_RATE)]


def test_eraser_contraction_slot(session, g):
    session.document.contraction_blocks = [
        ContractionBlock(3, 0, ContractionType.STRONG),
        ContractionBlock(3, 1, ContractionType.WEAK),
    ]
    session.set_tool(Tool.ERASER)
    assert session.click_internal(g.column_center(3), contraction_slot_y(g, 1)) == ClickResult.MUTATED
    assert session.document.contraction_blocks == [ContractionBlock(3, 0, ContractionType.STRONG)]
    # nothing left at slot 1
    assert session.click_internal(g.column_center(3), contraction_slot_y(g, 1)) == ClickResult.IGNORED


# ---------- clicks outside ----------

def test_click_outside_grid_is_ignored(session, g):
    assert session.click_internal(g.grid_x_start - 50, 1500) == ClickResult.IGNORED
    assert session.click_internal(g.column_center(2), 100) == ClickResult.IGNORED
    assert session.menu == NO_MENU


def test_click_screen_rescales_rendered_widget(session, g):
    vx, vy = g.to_visual(g.column_center(8), dilation_cell_y(g, 3))
    r = session.click_screen(vx / 2, vy / 2, g.canvas_w / 2, g.canvas_h / 2)
    assert r == ClickResult.MENU_OPENED
    assert session.menu == DilationMenu(hour_index=8, seed=3)


# ---------- session operations ----------

def test_active_phase_requires_dilation_point(session):
    assert session.set_active_phase(3) == alg.Rejected("no_dilation_point", 3)
    assert session.document.active_phase_index is None
    confirm_dilation_at(session, 3, 4)
    assert session.set_active_phase(3).accepted
    lines = session.reference_lines()
    assert lines.alert == alg.Segment(3, 4, 9, 10)


def test_active_phase_from_first_dilation(session):
    assert not session.set_active_phase_from_first_dilation().accepted
    confirm_dilation_at(session, 5, 6)
    confirm_dilation_at(session, 2, 4)
    assert session.set_active_phase_from_first_dilation() == alg.Accepted(2)


def test_clear_all_keeps_table_and_header(session):
    confirm_dilation_at(session, 2, 4)
    session.set_active_phase(2)
    session.document.contraction_blocks = [ContractionBlock(1, 0, ContractionType.WEAK)]
    session.update_header("name", "maria")
    session.update_table(0, "examiner", "dr x")
    session.clear_all()
    doc = session.document
    assert doc.points == [] and doc.contraction_blocks == []
    assert doc.active_phase_index is None
    assert doc.header.name == "MARIA"
    assert doc.table_data[0].examiner == "DR X"


def test_text_fields_are_upper_cased(session):
    session.update_header("baby_name", "joão")
    session.update_table(4, "oxytocin", "5 ui")
    session.set_observations("bcf ok")
    assert session.document.header.baby_name == "JOÃO"
    assert session.document.table_data[4].oxytocin == "5 UI"
    assert session.document.observations == "BCF OK"


def test_unknown_fields_raise(session):
    with pytest.raises(ValueError):
        session.update_header("weight", "x")
    with pytest.raises(ValueError):
        session.update_table(0, "weight", "x")


@pytest.mark.parametrize("raw,out", [("o+", "O POSITIVO"), ("ab-", "AB NEGATIVO"), ("", ""), ("A", "A")])
def test_format_blood_type(raw, out):
    assert format_blood_type(raw) == out


def test_session_format_blood_type_updates_header(session):
    session.update_header("blood_type", "b+")
    assert session.format_blood_type() == "B POSITIVO"
    assert session.document.header.blood_type == "B POSITIVO"


def test_shapes_follow_document(session):
    assert [s for s in session.shapes() if s.role == "dilation"] == []
    confirm_dilation_at(session, 2, 4)
    assert len([s for s in session.shapes() if s.role == "dilation"]) == 1


def test_unknown_tool_name():
    with pytest.raises(ValueError):
        PartogramSession(tool="pencil")
