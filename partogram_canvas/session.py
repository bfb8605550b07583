from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from . import algorithms as alg
from .data_model import (
    ContractionType,
    HEADER_FIELDS,
    PartogramDocument,
    PointType,
    ROTATIONS,
    TABLE_FIELDS,
    VARIETIES,
)
from .geometry import ChartGeometry, DEFAULT_GEOMETRY
from .renderer import Shape, render
from .zones import Zone, ZoneHit, classify

logger = logging.getLogger(__name__)


class Tool(str, Enum):
    DILATION = "dilation"
    STATION = "station"
    HEART_RATE = "heart_rate"
    CONTRACTION = "contraction"
    ERASER = "eraser"


class ClickResult(str, Enum):
    IGNORED = "ignored"
    MUTATED = "mutated"
    REJECTED = "rejected"
    MENU_OPENED = "menu_opened"


# ---------- confirmation menus ----------

@dataclass(frozen=True)
class NoMenu:
    pass


@dataclass(frozen=True)
class DilationMenu:
    hour_index: int
    seed: int


@dataclass(frozen=True)
class StationMenu:
    hour_index: int
    seed: int
    variety: Optional[str] = None
    rotation: int = 0


@dataclass(frozen=True)
class ContractionMenu:
    hour_index: int
    weak: int
    moderate: int
    strong: int


Menu = Union[NoMenu, DilationMenu, StationMenu, ContractionMenu]
NO_MENU = NoMenu()


def format_blood_type(value: str) -> str:
    out = (value or "").upper()
    out = out.replace("+", " POSITIVO")
    out = out.replace("-", " NEGATIVO")
    return out


class PartogramSession:
    """
    Single-user editing session over one PartogramDocument.

    Pointer clicks are classified and either mutate the document directly
    (eraser, heart rate) or open a confirmation menu. Only confirm_* and
    cancel() close a menu; the algorithms they call are pure.
    """

    def __init__(
        self,
        document: Optional[PartogramDocument] = None,
        *,
        geometry: ChartGeometry = DEFAULT_GEOMETRY,
        tool: Tool = Tool.DILATION,
    ) -> None:
        self.document = document if document is not None else PartogramDocument()
        self.geometry = geometry
        self.tool = Tool(tool)
        # paintbrush default only; the contraction menu is authoritative
        self.contraction_brush = ContractionType.MODERATE
        self.menu: Menu = NO_MENU
        self.dirty = False

    # ---------- tools ----------

    def set_tool(self, tool: Union[Tool, str]) -> None:
        self.tool = Tool(tool)

    def set_contraction_brush(self, kind: Union[ContractionType, str]) -> None:
        self.tool = Tool.CONTRACTION
        self.contraction_brush = ContractionType(kind)

    @property
    def has_open_menu(self) -> bool:
        return not isinstance(self.menu, NoMenu)

    # ---------- pointer input ----------

    def click_screen(self, sx: float, sy: float, rendered_w: float, rendered_h: float) -> ClickResult:
        vx, vy = self.geometry.screen_to_canvas(sx, sy, rendered_w, rendered_h)
        return self.click_visual(vx, vy)

    def click_visual(self, vx: float, vy: float) -> ClickResult:
        x, y = self.geometry.to_internal(vx, vy)
        return self.click_internal(x, y)

    def click_internal(self, x: float, y: float) -> ClickResult:
        hit = classify(x, y, self.geometry)
        if hit is None or hit.zone == Zone.NONE:
            logger.debug("click outside clinical zones: (%.1f, %.1f)", x, y)
            return ClickResult.IGNORED
        if self.tool == Tool.ERASER:
            return self._erase(hit)
        if hit.zone == Zone.DILATION:
            return self._open_dilation_or_station(hit)
        if hit.zone == Zone.HEART_RATE:
            return self._heart_rate_click(hit)
        return self._open_contraction(hit)

    def _erase(self, hit: ZoneHit) -> ClickResult:
        doc = self.document
        if hit.zone == Zone.DILATION:
            before = len(doc.points)
            doc.points = alg.remove_column_points(
                doc.points, hit.hour_index, (PointType.DILATION, PointType.STATION)
            )
            changed = len(doc.points) != before
        elif hit.zone == Zone.HEART_RATE:
            before = len(doc.points)
            doc.points = alg.erase_heart_rate(doc.points, hit.fractional_x)
            changed = len(doc.points) != before
        else:
            before = len(doc.contraction_blocks)
            doc.contraction_blocks = alg.erase_contraction(doc.contraction_blocks, hit.hour_index, hit.slot)
            changed = len(doc.contraction_blocks) != before
        if not changed:
            return ClickResult.IGNORED
        self.dirty = True
        return ClickResult.MUTATED

    def _open_dilation_or_station(self, hit: ZoneHit) -> ClickResult:
        if self.tool == Tool.STATION:
            existing = self.document.point_at(hit.hour_index, PointType.STATION)
            self.menu = StationMenu(
                hour_index=hit.hour_index,
                seed=alg.seed_station(hit.y, self.geometry),
                variety=existing.variety if existing else None,
                rotation=existing.rotation if existing else 0,
            )
        else:
            self.tool = Tool.DILATION
            self.menu = DilationMenu(hour_index=hit.hour_index, seed=alg.quantize_dilation(hit.y, self.geometry))
        return ClickResult.MENU_OPENED

    def _heart_rate_click(self, hit: ZoneHit) -> ClickResult:
        if self.tool != Tool.HEART_RATE:
            return ClickResult.IGNORED
        result = alg.quantize_heart_rate(hit.y, self.geometry)
        if not result.accepted:
            logger.debug("heart rate click rejected: %s", result)
            return ClickResult.REJECTED
        self.document.points, _ = alg.upsert_heart_rate(self.document.points, hit.fractional_x, result.value)
        self.dirty = True
        return ClickResult.MUTATED

    def _open_contraction(self, hit: ZoneHit) -> ClickResult:
        self.tool = Tool.CONTRACTION
        counts = alg.count_contractions(self.document.contraction_blocks, hit.hour_index)
        self.menu = ContractionMenu(
            hour_index=hit.hour_index,
            weak=counts[ContractionType.WEAK],
            moderate=counts[ContractionType.MODERATE],
            strong=counts[ContractionType.STRONG],
        )
        return ClickResult.MENU_OPENED

    # ---------- menu transitions ----------

    def cancel(self) -> None:
        self.menu = NO_MENU

    def confirm_dilation(self, value: Optional[int]) -> alg.PolicyResult:
        """Apply the dilation menu. None clears the column's dilation point."""
        menu = self.menu
        if not isinstance(menu, DilationMenu):
            return alg.Rejected("menu_not_open", value)
        doc = self.document
        if value is None:
            doc.points = alg.remove_column_points(doc.points, menu.hour_index, (PointType.DILATION,))
            result: alg.PolicyResult = alg.Accepted(None)
        else:
            result = alg.dilation_policy(value)
            if not result.accepted:
                return result
            doc.points = alg.upsert_column_point(doc.points, menu.hour_index, PointType.DILATION, value)
        self.menu = NO_MENU
        self.dirty = True
        return result

    def confirm_station(
        self,
        value: Optional[int],
        variety: Optional[str] = None,
        rotation: Optional[int] = None,
    ) -> alg.PolicyResult:
        """Apply the station menu. None clears the column's station point."""
        menu = self.menu
        if not isinstance(menu, StationMenu):
            return alg.Rejected("menu_not_open", value)
        doc = self.document
        if value is None:
            doc.points = alg.remove_column_points(doc.points, menu.hour_index, (PointType.STATION,))
            result: alg.PolicyResult = alg.Accepted(None)
        else:
            result = alg.station_policy(value)
            if not result.accepted:
                return result
            variety = variety if variety in VARIETIES else None
            rotation = rotation if rotation in ROTATIONS else 0
            # the standard variety is never drawn rotated
            if variety == "P":
                rotation = 0
            doc.points = alg.upsert_column_point(
                doc.points,
                menu.hour_index,
                PointType.STATION,
                alg.station_to_y(value),
                variety=variety,
                rotation=rotation,
            )
        self.menu = NO_MENU
        self.dirty = True
        return result

    def confirm_contractions(self, weak: int, moderate: int, strong: int) -> Optional[alg.PackResult]:
        menu = self.menu
        if not isinstance(menu, ContractionMenu):
            return None
        doc = self.document
        doc.contraction_blocks, packed = alg.replace_contraction_column(
            doc.contraction_blocks, menu.hour_index, weak, moderate, strong
        )
        self.menu = NO_MENU
        self.dirty = True
        return packed

    # ---------- session operations ----------

    def set_active_phase(self, index: int) -> alg.PolicyResult:
        if self.document.point_at(index, PointType.DILATION) is None:
            return alg.Rejected("no_dilation_point", index)
        self.document.active_phase_index = index
        self.dirty = True
        return alg.Accepted(index)

    def set_active_phase_from_first_dilation(self) -> alg.PolicyResult:
        col = alg.first_dilation_column(self.document.points)
        if col is None:
            return alg.Rejected("no_dilation_point")
        return self.set_active_phase(col)

    def clear_all(self) -> None:
        """Remove every point, block and the active phase; table and header stay."""
        self.document.points = []
        self.document.contraction_blocks = []
        self.document.active_phase_index = None
        self.menu = NO_MENU
        self.dirty = True

    def heart_rate_readings(self, hour: int) -> List[Tuple[float, int]]:
        return alg.heart_rate_readings(self.document.points, hour)

    def set_heart_rate_readings(
        self, hour: int, readings: Sequence[Tuple[float, float]]
    ) -> List[alg.PolicyResult]:
        self.document.points, results = alg.replace_heart_rate_hour(self.document.points, hour, readings)
        self.dirty = True
        return results

    def update_table(self, index: int, field_name: str, value: str) -> None:
        if field_name not in TABLE_FIELDS:
            raise ValueError(f"Unknown table field: {field_name}")
        setattr(self.document.table_data[index], field_name, (value or "").upper())
        self.dirty = True

    def update_header(self, field_name: str, value: str) -> None:
        if field_name not in HEADER_FIELDS:
            raise ValueError(f"Unknown header field: {field_name}")
        setattr(self.document.header, field_name, (value or "").upper())
        self.dirty = True

    def format_blood_type(self) -> str:
        header = self.document.header
        header.blood_type = format_blood_type(header.blood_type)
        return header.blood_type

    def set_observations(self, text: str) -> None:
        self.document.observations = (text or "").upper()
        self.dirty = True

    def reference_lines(self) -> Optional[alg.ReferenceLines]:
        return alg.project_reference_lines(self.document.points, self.document.active_phase_index)

    def shapes(self) -> List[Shape]:
        return render(self.document, self.geometry)
