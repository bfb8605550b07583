from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .algorithms import MAX_CONTRACTION_SLOTS, migrate_legacy_contractions
from .data_model import (
    ContractionBlock,
    ContractionType,
    HeaderData,
    NUM_COLUMNS,
    PartogramDocument,
    Point,
    PointType,
    TableColumn,
    default_table,
)
from .session import format_blood_type
from .store import PatientRecord, PatientRecordStore

logger = logging.getLogger(__name__)

# Wire names follow the stored partogram payload; heart rate was historically "fcf".
_POINT_TYPE_TO_WIRE = {
    PointType.DILATION: "dilation",
    PointType.STATION: "station",
    PointType.HEART_RATE: "fcf",
}
_POINT_TYPE_FROM_WIRE = {
    "dilation": PointType.DILATION,
    "station": PointType.STATION,
    "fcf": PointType.HEART_RATE,
    "heart_rate": PointType.HEART_RATE,
}

TABLE_KEYS = {
    "real_time": "realTime",
    "register_hour": "registerHour",
    "amniotic_fluid": "amnioticFluid",
    "liquor": "la",
    "oxytocin": "oxytocin",
    "medications": "meds",
    "examiner": "examiner",
    "notes": "notes",
}

HEADER_KEYS = {
    "date": "date",
    "record_id": "id",
    "name": "name",
    "age": "age",
    "lmp": "dum",
    "edd": "dpp",
    "gestational_age": "ig",
    "ultrasound": "us",
    "parity": "parity",
    "blood_type": "bloodType",
    "baby_name": "babyName",
    "start_date": "startDate",
}


def _num(v: Any):
    f = float(v)
    return int(f) if f.is_integer() else f


def _text(v: Any) -> str:
    return "" if v is None else str(v)


# ---------- encode ----------

def encode_point(p: Point) -> Dict[str, Any]:
    out: Dict[str, Any] = {"x": _num(p.x), "y": _num(p.y), "type": _POINT_TYPE_TO_WIRE[p.type]}
    if p.type == PointType.STATION:
        if p.variety:
            out["variety"] = p.variety
        out["rotation"] = int(p.rotation or 0)
    return out


def encode_block(b: ContractionBlock) -> Dict[str, Any]:
    return {"x": int(b.x), "slot": int(b.slot), "type": b.type.value}


def encode_table_column(col: TableColumn) -> Dict[str, Any]:
    out: Dict[str, Any] = {"hourIndex": col.hour_index}
    for attr, key in TABLE_KEYS.items():
        out[key] = getattr(col, attr)
    return out


def encode_header(header: HeaderData) -> Dict[str, str]:
    return {key: getattr(header, attr) for attr, key in HEADER_KEYS.items()}


def to_payload(doc: PartogramDocument, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Whole-document payload for the record store (one atomic write).

    A document without a start time is stamped in the payload only; the
    caller records it on the document once the write has succeeded.
    """
    start_time = doc.start_time or (now or datetime.now()).isoformat()
    return {
        "startTime": start_time,
        "points": [encode_point(p) for p in doc.points],
        "contractionBlocks": [encode_block(b) for b in doc.contraction_blocks],
        "tableData": [encode_table_column(c) for c in doc.table_data],
        "activePhaseStartIndex": doc.active_phase_index,
        "headerData": encode_header(doc.header),
        "observations": doc.observations,
    }


# ---------- decode ----------

def decode_point(d: Dict[str, Any]) -> Point:
    try:
        kind = _POINT_TYPE_FROM_WIRE[d["type"]]
        x = _num(d["x"])
        if kind != PointType.HEART_RATE:
            x = int(x)
        return Point(
            x=x,
            y=_num(d["y"]),
            type=kind,
            variety=d.get("variety") or None,
            rotation=int(d.get("rotation") or 0),
        )
    except (KeyError, TypeError, AttributeError, ValueError):
        raise ValueError(f"Unsupported point: {d!r}") from None


def decode_block(d: Dict[str, Any]) -> ContractionBlock:
    try:
        return ContractionBlock(x=int(d["x"]), slot=int(d["slot"]), type=ContractionType(d["type"]))
    except (KeyError, TypeError, AttributeError, ValueError):
        raise ValueError(f"Unsupported contraction block: {d!r}") from None


def _valid_blocks(blocks: List[ContractionBlock]) -> List[ContractionBlock]:
    out: List[ContractionBlock] = []
    seen = set()
    for b in blocks:
        if not (0 <= b.x < NUM_COLUMNS and 0 <= b.slot < MAX_CONTRACTION_SLOTS):
            logger.debug("dropping out-of-range contraction block %r", b)
            continue
        if (b.x, b.slot) in seen:
            logger.debug("dropping duplicate contraction block %r", b)
            continue
        seen.add((b.x, b.slot))
        out.append(b)
    return out


def decode_contractions(payload: Dict[str, Any]) -> List[ContractionBlock]:
    """
    Current payloads carry contractionBlocks. Older ones only have aggregate
    contractions; those are migrated here, once, at load time.
    """
    blocks = payload.get("contractionBlocks")
    if blocks is not None:
        if not isinstance(blocks, list):
            raise ValueError("contractionBlocks must be a list")
        return _valid_blocks([decode_block(b) for b in blocks])
    legacy = payload.get("contractions")
    if legacy:
        if not isinstance(legacy, list):
            raise ValueError("contractions must be a list")
        try:
            migrated = migrate_legacy_contractions(legacy)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Unsupported legacy contractions: {e}") from e
        logger.info("migrated %d legacy contraction aggregates into %d blocks", len(legacy), len(migrated))
        return migrated
    return []


def decode_table(rows: Any, *, now: Optional[datetime] = None) -> List[TableColumn]:
    """Exactly NUM_COLUMNS columns; missing ones get fresh defaults."""
    if not rows:
        return default_table(now)
    if not isinstance(rows, list):
        raise ValueError("tableData must be a list")
    defaults = default_table(now)
    out: List[TableColumn] = []
    for i in range(NUM_COLUMNS):
        if i >= len(rows):
            out.append(defaults[i])
            continue
        row = rows[i] or {}
        if not isinstance(row, dict):
            raise ValueError(f"Unsupported table column {i}: {row!r}")
        col = TableColumn(hour_index=i)
        for attr, key in TABLE_KEYS.items():
            setattr(col, attr, _text(row.get(key)))
        if row.get("registerHour") is None:
            col.register_hour = str(i + 1)
        out.append(col)
    if len(rows) > NUM_COLUMNS:
        logger.warning("tableData has %d columns; keeping the first %d", len(rows), NUM_COLUMNS)
    return out


def decode_header(d: Optional[Dict[str, Any]], fallback: Optional[HeaderData] = None) -> HeaderData:
    header = fallback or HeaderData()
    if not d:
        return header
    if not isinstance(d, dict):
        raise ValueError("headerData must be an object")
    for attr, key in HEADER_KEYS.items():
        if key in d:
            setattr(header, attr, _text(d[key]))
    return header


def from_payload(
    payload: Dict[str, Any],
    *,
    header: Optional[HeaderData] = None,
    now: Optional[datetime] = None,
) -> PartogramDocument:
    if not isinstance(payload, dict):
        raise ValueError("Partogram payload must be an object")
    points = payload.get("points") or []
    if not isinstance(points, list):
        raise ValueError("points must be a list")
    active = payload.get("activePhaseStartIndex")
    try:
        active = int(active) if active is not None else None
    except (TypeError, ValueError):
        raise ValueError(f"Unsupported activePhaseStartIndex: {active!r}") from None
    return PartogramDocument(
        points=[decode_point(p) for p in points],
        contraction_blocks=decode_contractions(payload),
        table_data=decode_table(payload.get("tableData"), now=now),
        active_phase_index=active,
        header=decode_header(payload.get("headerData"), header),
        observations=_text(payload.get("observations")),
        start_time=payload.get("startTime"),
    )


# ---------- patient record -> document ----------

def default_header(patient: PatientRecord, today: Optional[date] = None) -> HeaderData:
    today = today or date.today()
    record_id = patient.medical_record_number or (patient.id or "")[:8]
    ga = ""
    if patient.gestational_age_weeks is not None:
        ga = f"{patient.gestational_age_weeks}s {patient.gestational_age_days or 0}d"
    return HeaderData(
        date=today.strftime("%d/%m/%Y"),
        record_id=record_id,
        name=patient.name or "",
        age=str(patient.age) if patient.age is not None else "",
        gestational_age=ga,
        parity=patient.parity or "",
        blood_type=format_blood_type(patient.blood_type) if patient.blood_type else "",
        baby_name=patient.baby_name or "",
        start_date=str(today.day),
    )


def load_document(patient: PatientRecord, *, now: Optional[datetime] = None) -> PartogramDocument:
    """
    Build the editing document for a patient: decode the saved partogram if
    there is one, otherwise start a fresh sheet with default table times.
    Header fields from the saved payload win over the demographics.
    """
    now = now or datetime.now()
    header = default_header(patient, now.date())
    if patient.partogram_data:
        return from_payload(patient.partogram_data, header=header, now=now)
    return PartogramDocument(table_data=default_table(now), header=header)


def save_document(
    store: PatientRecordStore,
    patient_id: str,
    doc: PartogramDocument,
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Write the document; it is only touched (start time) once the write succeeded."""
    payload = to_payload(doc, now=now)
    store.save_partogram(patient_id, payload)
    doc.start_time = payload["startTime"]
    return payload
