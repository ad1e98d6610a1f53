"""Pydantic schemas for the CareLedger record service."""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Access level granted to a doctor."""

    full_access = "FullAccess"
    read_only = "ReadOnly"
    external_consultant = "ExternalConsultant"


class ActionClass(str, Enum):
    """Category of operation used for authorization decisions."""

    create = "Create"
    read = "Read"
    update = "Update"
    delete = "Delete"
    reassign = "Reassign"
    generate_report = "GenerateReport"


class Doctor(BaseModel):
    """Doctor record owned by the doctor registry."""

    doctor_id: str = Field(..., alias="doctorId")
    name: str
    role: Role
    department: str

    model_config = {"populate_by_name": True}


class Patient(BaseModel):
    """Complete patient record stored per patient."""

    patient_id: str = Field(..., alias="patientId")
    name: str
    age: int
    medical_history: List[str] = Field(default_factory=list, alias="medicalHistory")
    current_treatment: str = Field("", alias="currentTreatment")
    assigned_doctor: str = Field(..., alias="assignedDoctor")
    reports: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class PatientSummary(BaseModel):
    """Projection of a patient used by the management report."""

    patient_id: str = Field(..., alias="patientId")
    name: str
    current_treatment: str = Field(..., alias="currentTreatment")
    assigned_doctor: str = Field(..., alias="assignedDoctor")
    reports: List[str]

    model_config = {"populate_by_name": True}


class AuditEntry(BaseModel):
    """Immutable audit trail entry."""

    key: str
    timestamp: datetime
    actor: str
    action: str
    message: str
    entry_hash: str


class DoctorCreateRequest(BaseModel):
    """Incoming doctor payload. Presence checks happen in the registry."""

    name: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None


class PatientInput(BaseModel):
    """Incoming patient payload for create and update."""

    name: Optional[str] = None
    age: Any = None
    medical_history: Optional[List[str]] = Field(None, alias="medicalHistory")
    current_treatment: Optional[str] = Field(None, alias="currentTreatment")
    assigned_doctor: Optional[str] = Field(None, alias="assignedDoctor")

    model_config = {"populate_by_name": True}


class ReportRequest(BaseModel):
    """New medical report payload."""

    report: Optional[str] = None


class AssignDoctorRequest(BaseModel):
    """Request to move a patient to another doctor."""

    patient_id: str = Field(..., alias="patientId")
    doctor_id: str = Field(..., alias="doctorId")

    model_config = {"populate_by_name": True}


class MessageResponse(BaseModel):
    message: str


class SummaryReport(BaseModel):
    """Response wrapper for the management report."""

    report_data: List[PatientSummary] = Field(..., alias="reportData")

    model_config = {"populate_by_name": True}
