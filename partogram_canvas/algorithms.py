from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .data_model import ContractionBlock, ContractionType, Point, PointType
from .geometry import ChartGeometry, DEFAULT_GEOMETRY

logger = logging.getLogger(__name__)

DILATION_MIN = 0
DILATION_MAX = 10

# De Lee planes; stored on the dilation axis as y = STATION_OFFSET - station
STATION_VALUES = (-3, -2, -1, 0, 1, 2, 3, 4, 5)
STATION_OFFSET = 6

HEART_RATE_MIN = 80
HEART_RATE_MAX = 180
HEART_RATE_STEP = 5
HEART_RATE_TOLERANCE = 0.1
HEART_RATE_READINGS_PER_HOUR = 4

MAX_CONTRACTION_SLOTS = 5
# slot 0 is filled first, with the strongest intensity
PACKING_ORDER = (ContractionType.STRONG, ContractionType.MODERATE, ContractionType.WEAK)

# hours between the alert line and the action line
ACTION_LINE_OFFSET = 4


# ---------- policy results ----------

@dataclass(frozen=True)
class Accepted:
    value: Any
    accepted: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Rejected:
    reason: str
    value: Any = None
    accepted: bool = field(default=False, init=False)


PolicyResult = Union[Accepted, Rejected]


def dilation_policy(value: Optional[float]) -> PolicyResult:
    if value is None:
        return Rejected("missing", value)
    if not (DILATION_MIN <= value <= DILATION_MAX):
        return Rejected("out_of_range", value)
    return Accepted(value)


def station_policy(value: Optional[int]) -> PolicyResult:
    if value not in STATION_VALUES:
        return Rejected("out_of_domain", value)
    return Accepted(value)


def heart_rate_policy(bpm: Optional[float]) -> PolicyResult:
    if bpm is None:
        return Rejected("missing", bpm)
    if not (HEART_RATE_MIN <= bpm <= HEART_RATE_MAX):
        return Rejected("out_of_range", bpm)
    return Accepted(bpm)


# ---------- quantization ----------

def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def quantize_dilation(y: float, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> int:
    """Dilation value (0..10) under an internal-space y, clamped to the axis."""
    g = geometry
    raw = g.dilation_max - (y - g.dilation_top) / g.dilation_height * g.dilation_max
    return max(DILATION_MIN, min(DILATION_MAX, _round_half_up(raw)))


def station_to_y(station: int) -> int:
    return STATION_OFFSET - station


def y_to_station(y: float) -> int:
    return int(round(STATION_OFFSET - y))


def seed_station(y: float, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> int:
    """Station under the pointer, clamped to the De Lee domain."""
    station = y_to_station(quantize_dilation(y, geometry))
    return max(STATION_VALUES[0], min(STATION_VALUES[-1], station))


def raw_heart_rate(y: float, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> float:
    g = geometry
    return g.heart_rate_max - (y - g.heart_rate_top) * g.heart_rate_range / g.heart_rate_height


def quantize_heart_rate(y: float, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> PolicyResult:
    """Snap the value under y to the nearest 5 bpm; outside 80..180 is rejected."""
    bpm = _round_half_up(raw_heart_rate(y, geometry) / HEART_RATE_STEP) * HEART_RATE_STEP
    return heart_rate_policy(bpm)


# ---------- point upserts ----------

def upsert_column_point(
    points: Sequence[Point],
    x: int,
    kind: PointType,
    y: float,
    *,
    variety: Optional[str] = None,
    rotation: int = 0,
) -> List[Point]:
    """Replace the point of `kind` at column x (or insert it). Returns a new list."""
    out = [p for p in points if not (p.type == kind and p.x == x)]
    out.append(Point(x=x, y=y, type=kind, variety=variety, rotation=rotation))
    return out


def remove_column_points(points: Sequence[Point], x: int, kinds: Iterable[PointType]) -> List[Point]:
    kinds = set(kinds)
    return [p for p in points if not (p.type in kinds and p.x == x)]


def _near(p: Point, x: float, tolerance: float) -> bool:
    return p.type == PointType.HEART_RATE and abs(p.x - x) < tolerance


def upsert_heart_rate(
    points: Sequence[Point], x: float, bpm: float, tolerance: float = HEART_RATE_TOLERANCE
) -> Tuple[List[Point], PolicyResult]:
    result = heart_rate_policy(bpm)
    if not result.accepted:
        logger.debug("heart rate %s rejected (%s)", bpm, result.reason)
        return list(points), result
    out = [p for p in points if not _near(p, x, tolerance)]
    out.append(Point(x=x, y=bpm, type=PointType.HEART_RATE))
    return out, result


def erase_heart_rate(
    points: Sequence[Point], x: float, tolerance: float = HEART_RATE_TOLERANCE
) -> List[Point]:
    return [p for p in points if not _near(p, x, tolerance)]


def heart_rate_readings(points: Sequence[Point], hour: int) -> List[Tuple[float, int]]:
    """(bpm, minute) pairs recorded inside one hour column, ordered by minute."""
    out = []
    for p in points:
        if p.type == PointType.HEART_RATE and math.floor(p.x) == hour:
            out.append((p.y, int(round((p.x - hour) * 60))))
    out.sort(key=lambda r: r[1])
    return out


def replace_heart_rate_hour(
    points: Sequence[Point], hour: int, readings: Sequence[Tuple[float, float]]
) -> Tuple[List[Point], List[PolicyResult]]:
    """
    Replace every heart-rate point inside `hour` with the given (bpm, minute)
    readings. At most HEART_RATE_READINGS_PER_HOUR readings are kept; minutes are
    clamped to 0..59; out-of-range bpm values are rejected individually.
    """
    out = [p for p in points if not (p.type == PointType.HEART_RATE and math.floor(p.x) == hour)]
    results: List[PolicyResult] = []
    for bpm, minute in list(readings)[:HEART_RATE_READINGS_PER_HOUR]:
        result = heart_rate_policy(bpm)
        results.append(result)
        if not result.accepted:
            continue
        minute = min(59, max(0, minute))
        out.append(Point(x=hour + minute / 60, y=bpm, type=PointType.HEART_RATE))
    return out, results


# ---------- contractions ----------

@dataclass(frozen=True)
class PackResult:
    blocks: Tuple[ContractionBlock, ...]
    dropped: Dict[ContractionType, int]

    @property
    def total_dropped(self) -> int:
        return sum(self.dropped.values())


def count_contractions(blocks: Sequence[ContractionBlock], x: int) -> Dict[ContractionType, int]:
    counts = {t: 0 for t in ContractionType}
    for b in blocks:
        if b.x == x:
            counts[b.type] += 1
    return counts


def pack_contractions(x: int, weak: int, moderate: int, strong: int) -> PackResult:
    """
    Assign slots bottom-up: strong first, then moderate, then weak. Anything
    past MAX_CONTRACTION_SLOTS is dropped and reported in the result.
    """
    wanted = {
        ContractionType.STRONG: max(0, int(strong)),
        ContractionType.MODERATE: max(0, int(moderate)),
        ContractionType.WEAK: max(0, int(weak)),
    }
    blocks: List[ContractionBlock] = []
    dropped = {t: 0 for t in ContractionType}
    for kind in PACKING_ORDER:
        for _ in range(wanted[kind]):
            if len(blocks) < MAX_CONTRACTION_SLOTS:
                blocks.append(ContractionBlock(x=x, slot=len(blocks), type=kind))
            else:
                dropped[kind] += 1
    return PackResult(tuple(blocks), dropped)


def replace_contraction_column(
    blocks: Sequence[ContractionBlock], x: int, weak: int, moderate: int, strong: int
) -> Tuple[List[ContractionBlock], PackResult]:
    packed = pack_contractions(x, weak, moderate, strong)
    if packed.total_dropped:
        logger.info("column %d: dropped contractions over capacity %s", x,
                    {t.value: n for t, n in packed.dropped.items() if n})
    out = [b for b in blocks if b.x != x]
    out.extend(packed.blocks)
    return out, packed


def erase_contraction(blocks: Sequence[ContractionBlock], x: int, slot: int) -> List[ContractionBlock]:
    return [b for b in blocks if not (b.x == x and b.slot == slot)]


def intensity_from_duration(duration: Any) -> ContractionType:
    """
    Legacy aggregates stored either an intensity name or an average duration
    in seconds (<20 weak, 20..40 moderate, >40 strong).
    """
    if isinstance(duration, ContractionType):
        return duration
    if isinstance(duration, str):
        try:
            return ContractionType(duration.strip().lower())
        except ValueError:
            duration = float(duration)
    seconds = float(duration)
    if seconds < 20:
        return ContractionType.WEAK
    if seconds <= 40:
        return ContractionType.MODERATE
    return ContractionType.STRONG


def migrate_legacy_contractions(legacy: Iterable[Dict[str, Any]]) -> List[ContractionBlock]:
    """
    Expand old {x, duration, frequency} aggregates into individual blocks at
    slots 0..frequency-1. Counts are preserved as-is (no re-packing).
    """
    blocks: List[ContractionBlock] = []
    for c in legacy:
        x = int(c["x"])
        kind = intensity_from_duration(c.get("duration"))
        for slot in range(int(c.get("frequency") or 0)):
            blocks.append(ContractionBlock(x=x, slot=slot, type=kind))
    return blocks


# ---------- alert / action lines ----------

@dataclass(frozen=True)
class Segment:
    x0: float
    y0: float
    x1: float
    y1: float

    def shifted(self, dx: float) -> "Segment":
        return Segment(self.x0 + dx, self.y0, self.x1 + dx, self.y1)


@dataclass(frozen=True)
class ReferenceLines:
    alert: Segment
    action: Segment


def project_reference_lines(
    points: Sequence[Point], active_phase_index: Optional[int]
) -> Optional[ReferenceLines]:
    """
    Alert line: one dilation unit per hour from the dilation point at the
    active phase start up to full dilation. Action line: the same segment
    ACTION_LINE_OFFSET hours later. Coordinates are (hour column, dilation).
    """
    if active_phase_index is None:
        return None
    start = next(
        (p for p in points if p.type == PointType.DILATION and p.x == active_phase_index),
        None,
    )
    if start is None:
        return None
    hours_to_full = DILATION_MAX - start.y
    alert = Segment(start.x, start.y, start.x + hours_to_full, DILATION_MAX)
    return ReferenceLines(alert=alert, action=alert.shifted(ACTION_LINE_OFFSET))


def first_dilation_column(points: Sequence[Point]) -> Optional[int]:
    cols = sorted(p.x for p in points if p.type == PointType.DILATION)
    return int(cols[0]) if cols else None
