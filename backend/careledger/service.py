"""Service context wiring stores, audit log, access control and registries."""
from __future__ import annotations

import functools
import logging
import threading
from typing import List, Optional, Sequence

from . import config, schemas
from .access import AccessControl
from .audit import AuditLog
from .registry import DoctorRegistry, IdFactory, PatientRegistry, new_id
from .storage import EncryptedFileStore, InMemoryStore, KeyedStore, Keyring

logger = logging.getLogger(__name__)


def _serialized(method):
    """Run a boundary operation to completion before any other starts."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class RecordService:
    """Owns the three keyed stores and exposes one method per boundary operation."""

    def __init__(
        self,
        doctor_store: KeyedStore[schemas.Doctor],
        patient_store: KeyedStore[schemas.Patient],
        audit_store: KeyedStore[schemas.AuditEntry],
        access: Optional[AccessControl] = None,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._lock = threading.RLock()
        self.audit_log = AuditLog(audit_store)
        self.access = access or AccessControl()
        self.doctors = DoctorRegistry(doctor_store, self.audit_log, id_factory)
        self.patients = PatientRegistry(
            patient_store, self.doctors, self.audit_log, self.access, id_factory
        )

    @classmethod
    def in_memory(cls, **kwargs) -> "RecordService":
        return cls(InMemoryStore(), InMemoryStore(), InMemoryStore(), **kwargs)

    @classmethod
    def from_settings(cls, settings: config.Settings) -> "RecordService":
        access = AccessControl(enforce_all_mutations=settings.enforce_all_mutations)
        if settings.storage == "memory":
            logger.info("Using in-memory record stores")
            return cls.in_memory(access=access)
        data_path = settings.data_path
        if settings.encryption_key:
            key = settings.encryption_key.encode("utf-8")
        else:
            key = Keyring(data_path / config.KEY_FILE).get_key()
        logger.info("Using encrypted record stores in %s", data_path)
        return cls(
            EncryptedFileStore(data_path / config.DOCTORS_FILE, schemas.Doctor, key),
            EncryptedFileStore(data_path / config.PATIENTS_FILE, schemas.Patient, key),
            EncryptedFileStore(data_path / config.AUDIT_FILE, schemas.AuditEntry, key),
            access=access,
        )

    @_serialized
    def create_doctor(
        self, name: Optional[str], role: Optional[str], department: Optional[str]
    ) -> schemas.Doctor:
        return self.doctors.create(name, role, department)

    @_serialized
    def get_doctor(self, doctor_id: str) -> schemas.Doctor:
        return self.doctors.get(doctor_id)

    @_serialized
    def create_patient(
        self,
        name: Optional[str],
        age: Optional[int],
        medical_history: Optional[Sequence[str]],
        current_treatment: Optional[str],
        assigned_doctor: Optional[str],
    ) -> schemas.Patient:
        return self.patients.create(
            name, age, medical_history, current_treatment, assigned_doctor
        )

    @_serialized
    def get_patient(self, patient_id: str) -> schemas.Patient:
        return self.patients.get(patient_id)

    @_serialized
    def view_patient(self, patient_id: str) -> schemas.Patient:
        return self.patients.view(patient_id)

    @_serialized
    def update_patient(
        self,
        patient_id: str,
        name: Optional[str],
        age: Optional[int],
        medical_history: Optional[Sequence[str]],
        current_treatment: Optional[str],
        assigned_doctor: Optional[str],
    ) -> schemas.Patient:
        return self.patients.update(
            patient_id, name, age, medical_history, current_treatment, assigned_doctor
        )

    @_serialized
    def add_patient_report(self, patient_id: str, report: Optional[str]) -> List[str]:
        return self.patients.add_report(patient_id, report)

    @_serialized
    def list_patient_reports(self, patient_id: str) -> List[str]:
        return self.patients.list_reports(patient_id)

    @_serialized
    def delete_patient_report(self, patient_id: str, index: int) -> None:
        self.patients.delete_report(patient_id, index)

    @_serialized
    def assign_doctor(self, patient_id: str, doctor_id: str) -> None:
        self.patients.assign_doctor(patient_id, doctor_id)

    @_serialized
    def delete_patient(self, patient_id: str, requesting_doctor_id: str) -> None:
        self.patients.delete(patient_id, requesting_doctor_id)

    @_serialized
    def generate_summary_report(self) -> List[schemas.PatientSummary]:
        return self.patients.generate_summary_report()

    @_serialized
    def list_audit_entries(self) -> List[schemas.AuditEntry]:
        return self.audit_log.entries()
