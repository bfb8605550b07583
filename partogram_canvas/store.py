from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    pass


# attribute -> JSON key
_RECORD_KEYS = {
    "id": "id",
    "name": "name",
    "bed": "bed",
    "age": "age",
    "gestational_age_weeks": "gestationalAgeWeeks",
    "gestational_age_days": "gestationalAgeDays",
    "parity": "parity",
    "blood_type": "bloodType",
    "baby_name": "babyName",
    "medical_record_number": "medicalRecordNumber",
    "partogram_data": "partogramData",
}


@dataclass
class PatientRecord:
    id: str
    name: str = ""
    bed: str = ""
    age: Optional[int] = None
    gestational_age_weeks: Optional[int] = None
    gestational_age_days: Optional[int] = None
    parity: str = ""
    blood_type: str = ""
    baby_name: str = ""
    medical_record_number: str = ""
    partogram_data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in _RECORD_KEYS.items()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PatientRecord":
        kwargs = {attr: d[key] for attr, key in _RECORD_KEYS.items() if key in d}
        if "id" not in kwargs:
            raise ValueError("Patient record without id")
        return cls(**kwargs)


class PatientRecordStore:
    """
    JSON-file patient record store.

    The whole file is rewritten on each save: it is written to a temporary file
    next to the target and then moved over it, so a failed save leaves the
    previous contents in place.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    # ---------- file io ----------

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.exception("failed to read patient store %s", self.path)
            raise StoreError(f"Could not read {self.path}: {e}") from e
        patients = data.get("patients", {}) if isinstance(data, dict) else None
        if not isinstance(patients, dict):
            raise StoreError(f"Malformed patient store: {self.path}")
        return patients

    def _write(self, patients: Dict[str, Dict[str, Any]]) -> None:
        payload = json.dumps({"patients": patients}, indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=str(self.path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.exception("failed to write patient store %s", self.path)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Could not write {self.path}: {e}") from e

    # ---------- records ----------

    def list_patients(self) -> List[PatientRecord]:
        out = []
        for d in self._read().values():
            try:
                out.append(PatientRecord.from_dict(d))
            except (TypeError, ValueError) as e:
                raise StoreError(f"Malformed patient record: {e}") from e
        out.sort(key=lambda r: (r.bed or "", r.name or ""))
        return out

    def get_patient(self, patient_id: str) -> PatientRecord:
        d = self._read().get(patient_id)
        if d is None:
            raise StoreError(f"Unknown patient: {patient_id}")
        try:
            return PatientRecord.from_dict(d)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Malformed patient record {patient_id}: {e}") from e

    def add_patient(self, record: PatientRecord) -> PatientRecord:
        if not record.id:
            record.id = uuid.uuid4().hex
        patients = self._read()
        patients[record.id] = record.to_dict()
        self._write(patients)
        logger.info("added patient %s", record.id)
        return record

    def save_partogram(self, patient_id: str, payload: Dict[str, Any]) -> None:
        """Replace the whole partogram payload for one patient."""
        patients = self._read()
        if patient_id not in patients:
            raise StoreError(f"Unknown patient: {patient_id}")
        patients[patient_id]["partogramData"] = payload
        self._write(patients)
        logger.info("saved partogram for patient %s (%d points)", patient_id, len(payload.get("points", [])))
