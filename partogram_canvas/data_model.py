from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional


NUM_COLUMNS = 16


class PointType(str, Enum):
    DILATION = "dilation"
    STATION = "station"
    HEART_RATE = "heart_rate"


class ContractionType(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


# Presentation varieties that can replace the plain station circle.
VARIETIES = {
    "P": "Padrão",
    "PS": "Pélvica simples",
    "PP": "Pélvica podal",
    "O": "Occipto",
    "B": "Bregma",
    "N": "Nariz",
    "M": "Mento",
}
ROTATIONS = (0, 45, 90, 135, 180, 225, 270, 315)


@dataclass
class Point:
    # hour column (fractional for heart rate)
    x: float
    # dilation axis value (0..10) for dilation/station; bpm for heart rate
    y: float
    type: PointType
    # station only
    variety: Optional[str] = None
    rotation: int = 0


@dataclass(frozen=True)
class ContractionBlock:
    x: int
    slot: int  # 0 = bottom of the stack
    type: ContractionType


TABLE_FIELDS = (
    "real_time",
    "register_hour",
    "amniotic_fluid",
    "liquor",
    "oxytocin",
    "medications",
    "examiner",
    "notes",
)


@dataclass
class TableColumn:
    hour_index: int
    real_time: str = ""
    register_hour: str = ""
    amniotic_fluid: str = ""
    liquor: str = ""
    oxytocin: str = ""
    medications: str = ""
    examiner: str = ""
    notes: str = ""


HEADER_FIELDS = (
    "date",
    "record_id",
    "name",
    "age",
    "lmp",
    "edd",
    "gestational_age",
    "ultrasound",
    "parity",
    "blood_type",
    "baby_name",
    "start_date",
)


@dataclass
class HeaderData:
    date: str = ""
    record_id: str = ""
    name: str = ""
    age: str = ""
    lmp: str = ""
    edd: str = ""
    gestational_age: str = ""
    ultrasound: str = ""
    parity: str = ""
    blood_type: str = ""
    baby_name: str = ""
    start_date: str = ""


def default_table(now: Optional[datetime] = None) -> List[TableColumn]:
    """Fresh table: one column per hour starting at the current (floored) hour."""
    now = now or datetime.now()
    start = now.replace(minute=0, second=0, microsecond=0)
    cols: List[TableColumn] = []
    for i in range(NUM_COLUMNS):
        t = start + timedelta(hours=i)
        cols.append(TableColumn(hour_index=i, real_time=str(t.hour), register_hour=str(i + 1)))
    return cols


@dataclass
class PartogramDocument:
    points: List[Point] = field(default_factory=list)
    contraction_blocks: List[ContractionBlock] = field(default_factory=list)
    table_data: List[TableColumn] = field(default_factory=default_table)
    active_phase_index: Optional[int] = None
    header: HeaderData = field(default_factory=HeaderData)
    observations: str = ""
    start_time: Optional[str] = None

    def points_of(self, kind: PointType) -> List[Point]:
        return sorted((p for p in self.points if p.type == kind), key=lambda p: p.x)

    def point_at(self, x: int, kind: PointType) -> Optional[Point]:
        for p in self.points:
            if p.type == kind and p.x == x:
                return p
        return None

    def blocks_at(self, x: int) -> List[ContractionBlock]:
        return sorted((b for b in self.contraction_blocks if b.x == x), key=lambda b: b.slot)
