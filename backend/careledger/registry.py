"""Doctor and patient registries: validation, mutation and audit attribution."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from . import schemas
from .access import AccessControl
from .audit import AuditLog
from .errors import (
    IndexOutOfRangeError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .storage import KeyedStore

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid4())


def validate_patient_input(
    patient_id: Optional[str],
    name: Optional[str],
    age: Optional[int],
    assigned_doctor: Optional[str],
) -> None:
    """Reject input unless id, name, age and assigned doctor are all set.

    Age follows the same presence rule, so 0 is rejected along with
    negative and non-integer values.
    """
    if not patient_id or not name or not age or not assigned_doctor:
        raise ValidationError("Invalid patient data")
    if isinstance(age, bool) or not isinstance(age, int) or age < 0:
        raise ValidationError("Invalid patient data: age must be a positive integer")


class DoctorRegistry:
    """CRUD over doctor records."""

    def __init__(
        self,
        store: KeyedStore[schemas.Doctor],
        audit_log: AuditLog,
        id_factory: IdFactory = new_id,
    ) -> None:
        self.store = store
        self.audit_log = audit_log
        self.id_factory = id_factory

    def create(
        self,
        name: Optional[str],
        role: Optional[str],
        department: Optional[str],
    ) -> schemas.Doctor:
        if not name or not role or not department:
            raise ValidationError("Invalid input")
        try:
            parsed_role = schemas.Role(role)
        except ValueError as error:
            raise ValidationError(f"Unknown role: {role}") from error
        doctor = schemas.Doctor(
            doctor_id=self.id_factory(),
            name=name,
            role=parsed_role,
            department=department,
        )
        self.store.insert(doctor.doctor_id, doctor)
        self.audit_log.record(doctor.doctor_id, "Added new doctor")
        return doctor

    def get(self, doctor_id: str) -> schemas.Doctor:
        doctor = self.store.get(doctor_id)
        if doctor is None:
            raise NotFoundError("Doctor not found")
        return doctor


class PatientRegistry:
    """CRUD over patient records, their reports and doctor assignment."""

    def __init__(
        self,
        store: KeyedStore[schemas.Patient],
        doctors: DoctorRegistry,
        audit_log: AuditLog,
        access: AccessControl,
        id_factory: IdFactory = new_id,
    ) -> None:
        self.store = store
        self.doctors = doctors
        self.audit_log = audit_log
        self.access = access
        self.id_factory = id_factory

    def _require_actor(self, actor_id: str, action: schemas.ActionClass) -> None:
        """Check the acting doctor's role when ``action`` is gated."""
        if not self.access.is_enforced(action):
            return
        actor = self.doctors.get(actor_id)
        self.access.require(actor.role, action)

    def create(
        self,
        name: Optional[str],
        age: Optional[int],
        medical_history: Optional[Sequence[str]],
        current_treatment: Optional[str],
        assigned_doctor: Optional[str],
    ) -> schemas.Patient:
        patient_id = self.id_factory()
        validate_patient_input(patient_id, name, age, assigned_doctor)
        self._require_actor(assigned_doctor, schemas.ActionClass.create)
        patient = schemas.Patient(
            patient_id=patient_id,
            name=name,
            age=age,
            medical_history=list(medical_history or []),
            current_treatment=current_treatment or "",
            assigned_doctor=assigned_doctor,
            reports=[],
        )
        self.store.insert(patient_id, patient)
        self.audit_log.record(assigned_doctor, f"Added patient record: {patient_id}")
        return patient

    def get(self, patient_id: str) -> schemas.Patient:
        patient = self.store.get(patient_id)
        if patient is None:
            raise NotFoundError("Patient not found")
        return patient

    def view(self, patient_id: str) -> schemas.Patient:
        """Patient-facing read that leaves a trace in the audit log."""
        patient = self.get(patient_id)
        self.audit_log.record(patient_id, f"Viewed patient record: {patient_id}")
        return patient

    def update(
        self,
        patient_id: str,
        name: Optional[str],
        age: Optional[int],
        medical_history: Optional[Sequence[str]],
        current_treatment: Optional[str],
        assigned_doctor: Optional[str],
    ) -> schemas.Patient:
        validate_patient_input(patient_id, name, age, assigned_doctor)
        patient = self.get(patient_id)
        self._require_actor(assigned_doctor, schemas.ActionClass.update)
        patient.name = name
        patient.age = age
        patient.medical_history = list(medical_history or [])
        patient.current_treatment = current_treatment or ""
        patient.assigned_doctor = assigned_doctor
        self.store.insert(patient_id, patient)
        self.audit_log.record(assigned_doctor, f"Updated patient record: {patient_id}")
        return patient

    def add_report(self, patient_id: str, report: Optional[str]) -> List[str]:
        patient = self.get(patient_id)
        if report is None:
            raise ValidationError("Report text is required")
        self._require_actor(patient.assigned_doctor, schemas.ActionClass.update)
        patient.reports.append(report)
        self.store.insert(patient_id, patient)
        self.audit_log.record(
            patient.assigned_doctor, f"Added report for patient: {patient_id}"
        )
        return patient.reports

    def list_reports(self, patient_id: str) -> List[str]:
        return self.get(patient_id).reports

    def delete_report(self, patient_id: str, index: int) -> None:
        patient = self.get(patient_id)
        if isinstance(index, bool) or not 0 <= index < len(patient.reports):
            raise IndexOutOfRangeError("Report not found")
        self._require_actor(patient.assigned_doctor, schemas.ActionClass.update)
        del patient.reports[index]
        self.store.insert(patient_id, patient)
        self.audit_log.record(
            patient.assigned_doctor, f"Deleted report for patient: {patient_id}"
        )

    def assign_doctor(self, patient_id: str, doctor_id: str) -> None:
        patient = self.store.get(patient_id)
        doctor = self.doctors.store.get(doctor_id)
        if patient is None or doctor is None:
            raise NotFoundError("Patient or Doctor not found")
        self.access.require(doctor.role, schemas.ActionClass.reassign)
        patient.assigned_doctor = doctor.doctor_id
        self.store.insert(patient_id, patient)
        self.audit_log.record(doctor.doctor_id, f"Assigned to patient: {patient_id}")

    def delete(self, patient_id: str, requesting_doctor_id: str) -> None:
        doctor = self.doctors.get(requesting_doctor_id)
        if not self.access.authorize(doctor.role, schemas.ActionClass.delete):
            logger.warning(
                "Doctor %s (%s) denied delete of patient %s",
                doctor.doctor_id,
                doctor.role.value,
                patient_id,
            )
            raise PermissionDeniedError(
                "Doctor does not have permission to delete patient"
            )
        self.store.remove(patient_id)
        self.audit_log.record(doctor.doctor_id, f"Deleted patient record: {patient_id}")

    def generate_summary_report(self) -> List[schemas.PatientSummary]:
        report_data = []
        for _, patient in self.store.items():
            if patient is None:
                continue
            report_data.append(
                schemas.PatientSummary(
                    patient_id=patient.patient_id,
                    name=patient.name,
                    current_treatment=patient.current_treatment,
                    assigned_doctor=patient.assigned_doctor,
                    reports=list(patient.reports),
                )
            )
        self.audit_log.record("admin", "Generated patient reports")
        return report_data
