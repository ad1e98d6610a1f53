"""
Unit tests for the keyed stores and the keyring.
"""

import json

import pytest
from cryptography.fernet import Fernet

from careledger import schemas
from careledger.errors import StoreError
from careledger.storage import EncryptedFileStore, InMemoryStore, Keyring


def make_patient(patient_id="p1", **overrides):
    fields = dict(patient_id=patient_id, name="P1", age=40, assigned_doctor="d1")
    fields.update(overrides)
    return schemas.Patient(**fields)


@pytest.fixture
def key():
    return Fernet.generate_key()


@pytest.fixture
def file_store(tmp_path, key):
    return EncryptedFileStore(tmp_path / "patients.json", schemas.Patient, key)


# ── InMemoryStore ────────────────────────────────────────────────────

def test_memory_store_upsert_and_remove():
    store = InMemoryStore()
    store.insert("b", make_patient("b"))
    store.insert("a", make_patient("a"))
    store.insert("a", make_patient("a", name="renamed"))
    assert store.keys() == ["a", "b"]
    assert store.get("a").name == "renamed"

    store.remove("a")
    store.remove("a")
    assert store.get("a") is None
    assert len(store) == 1


def test_memory_store_returns_copies():
    store = InMemoryStore()
    store.insert("p1", make_patient())
    fetched = store.get("p1")
    fetched.reports.append("scribble")
    assert store.get("p1").reports == []


# ── EncryptedFileStore ───────────────────────────────────────────────

def test_file_store_round_trip_and_order(file_store):
    file_store.insert("p2", make_patient("p2", reports=["x"]))
    file_store.insert("p1", make_patient("p1"))
    assert file_store.keys() == ["p1", "p2"]
    assert file_store.get("p2").reports == ["x"]
    assert file_store.get("missing") is None


def test_file_store_encrypts_at_rest(tmp_path, file_store):
    file_store.insert("p1", make_patient(name="Secret Name"))
    raw = (tmp_path / "patients.json").read_text()
    assert "Secret Name" not in raw
    assert set(json.loads(raw)) == {"p1"}


def test_file_store_persists_across_instances(tmp_path, key, file_store):
    file_store.insert("p1", make_patient())
    reopened = EncryptedFileStore(tmp_path / "patients.json", schemas.Patient, key)
    assert reopened.get("p1") == make_patient()


def test_file_store_remove_absent_is_noop(file_store):
    file_store.remove("missing")
    assert file_store.keys() == []


def test_file_store_wrong_key(tmp_path, file_store):
    file_store.insert("p1", make_patient())
    other = EncryptedFileStore(
        tmp_path / "patients.json", schemas.Patient, Fernet.generate_key()
    )
    with pytest.raises(StoreError, match="decrypt"):
        other.get("p1")


def test_file_store_corrupt_file(tmp_path, file_store):
    (tmp_path / "patients.json").write_text("{not json")
    with pytest.raises(StoreError):
        file_store.keys()


def test_file_store_invalid_key(tmp_path):
    with pytest.raises(StoreError, match="Invalid encryption key"):
        EncryptedFileStore(tmp_path / "x.json", schemas.Patient, b"short")


# ── Keyring ──────────────────────────────────────────────────────────

def test_keyring_generates_once(tmp_path):
    keyring = Keyring(tmp_path / "keys" / "store.key")
    first = keyring.get_key()
    assert Keyring(tmp_path / "keys" / "store.key").get_key() == first
    Fernet(first)


def test_file_store_items_reads_file_once(monkeypatch, file_store):
    for patient_id in ("p3", "p1", "p2"):
        file_store.insert(patient_id, make_patient(patient_id))
    loads = []
    original = file_store._load

    def counting_load():
        loads.append(1)
        return original()

    monkeypatch.setattr(file_store, "_load", counting_load)
    items = file_store.items()
    assert [key for key, _ in items] == ["p1", "p2", "p3"]
    assert items[0][1] == make_patient("p1")
    assert len(loads) == 1


def test_memory_store_items_in_key_order():
    store = InMemoryStore()
    store.insert("b", make_patient("b"))
    store.insert("a", make_patient("a"))
    assert [key for key, _ in store.items()] == ["a", "b"]
