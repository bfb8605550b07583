import json

import pytest

from partogram_canvas.store import PatientRecord, PatientRecordStore, StoreError


@pytest.fixture
def store(tmp_path):
    return PatientRecordStore(tmp_path / "patients.json")


def test_empty_store(store):
    assert store.list_patients() == []


def test_add_and_get(store):
    rec = store.add_patient(PatientRecord(id="", name="MARIA", bed="3", age=30, blood_type="A+"))
    assert rec.id
    got = store.get_patient(rec.id)
    assert got == rec
    assert store.list_patients() == [rec]


def test_file_uses_camel_case_keys(store):
    store.add_patient(PatientRecord(id="p1", name="ANA", gestational_age_weeks=38, medical_record_number="77"))
    data = json.loads(store.path.read_text(encoding="utf-8"))
    rec = data["patients"]["p1"]
    assert rec["gestationalAgeWeeks"] == 38
    assert rec["medicalRecordNumber"] == "77"
    assert rec["partogramData"] is None


def test_save_partogram_replaces_payload(store, tmp_path):
    store.add_patient(PatientRecord(id="p1", name="ANA"))
    store.save_partogram("p1", {"points": [{"x": 1, "y": 4, "type": "dilation"}]})
    store.save_partogram("p1", {"points": []})

    reopened = PatientRecordStore(store.path)
    assert reopened.get_patient("p1").partogram_data == {"points": []}
    assert list(tmp_path.glob("*.tmp")) == []


def test_unknown_patient(store):
    with pytest.raises(StoreError):
        store.get_patient("missing")
    with pytest.raises(StoreError):
        store.save_partogram("missing", {})


def test_corrupt_file(store):
    store.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError) as exc:
        store.list_patients()
    assert isinstance(exc.value.__cause__, ValueError)


def test_malformed_records(store):
    store.path.write_text(json.dumps({"patients": []}), encoding="utf-8")
    with pytest.raises(StoreError):
        store.list_patients()
    store.path.write_text(json.dumps({"patients": {"p1": {"name": "NO ID"}}}), encoding="utf-8")
    with pytest.raises(StoreError):
        store.get_patient("p1")


def test_unwritable_location(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = PatientRecordStore(blocker / "patients.json")
    with pytest.raises(StoreError) as exc:
        store.add_patient(PatientRecord(id="p1"))
    assert isinstance(exc.value.__cause__, OSError)


def test_failed_save_keeps_previous_contents(store, monkeypatch):
    store.add_patient(PatientRecord(id="p1", name="ANA"))
    before = store.path.read_text(encoding="utf-8")

    def boom(*_a, **_k):
        raise OSError("disk full")

    monkeypatch.setattr("partogram_canvas.store.os.replace", boom)
    with pytest.raises(StoreError):
        store.save_partogram("p1", {"points": []})
    assert store.path.read_text(encoding="utf-8") == before
    assert list(store.path.parent.glob("*.tmp")) == []


def test_store_error_is_runtime_error():
    assert issubclass(StoreError, RuntimeError)
