"""FastAPI application exposing the CareLedger record service."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import List

from fastapi import Depends, FastAPI, Header, HTTPException

from . import schemas
from .config import Settings, load_settings
from .errors import (
    IndexOutOfRangeError,
    NotFoundError,
    PermissionDeniedError,
    RecordError,
    ValidationError,
)
from .service import RecordService

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_service() -> RecordService:
    return RecordService.from_settings(get_settings())


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    yield


app = FastAPI(
    lifespan=lifespan,
    title="CareLedger API",
    description=(
        "Doctor and patient record keeping with encrypted keyed storage, "
        "a hash-chained audit trail and role-gated destructive operations."
    ),
    version="0.1.0",
)


def to_http(error: RecordError) -> HTTPException:
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, (NotFoundError, IndexOutOfRangeError)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(error))
    logger.error("Record service failure: %s", error)
    return HTTPException(status_code=500, detail="Record store unavailable")


@app.post("/doctors", response_model=schemas.Doctor, status_code=201)
def create_doctor(
    payload: schemas.DoctorCreateRequest,
    service: RecordService = Depends(get_service),
) -> schemas.Doctor:
    try:
        return service.create_doctor(payload.name, payload.role, payload.department)
    except RecordError as error:
        raise to_http(error) from error


@app.get("/doctors/{doctor_id}", response_model=schemas.Doctor)
def get_doctor(
    doctor_id: str, service: RecordService = Depends(get_service)
) -> schemas.Doctor:
    try:
        return service.get_doctor(doctor_id)
    except RecordError as error:
        raise to_http(error) from error


@app.post("/patients", response_model=schemas.Patient, status_code=201)
def create_patient(
    payload: schemas.PatientInput,
    service: RecordService = Depends(get_service),
) -> schemas.Patient:
    try:
        return service.create_patient(
            payload.name,
            payload.age,
            payload.medical_history,
            payload.current_treatment,
            payload.assigned_doctor,
        )
    except RecordError as error:
        raise to_http(error) from error


@app.get("/patients/{patient_id}", response_model=schemas.Patient)
def get_patient(
    patient_id: str, service: RecordService = Depends(get_service)
) -> schemas.Patient:
    try:
        return service.get_patient(patient_id)
    except RecordError as error:
        raise to_http(error) from error


@app.get("/patients/{patient_id}/view", response_model=schemas.Patient)
def view_patient(
    patient_id: str, service: RecordService = Depends(get_service)
) -> schemas.Patient:
    """Read-only access for patients to their own record."""
    try:
        return service.view_patient(patient_id)
    except RecordError as error:
        raise to_http(error) from error


@app.put("/patients/{patient_id}", response_model=schemas.Patient)
def update_patient(
    patient_id: str,
    payload: schemas.PatientInput,
    service: RecordService = Depends(get_service),
) -> schemas.Patient:
    try:
        return service.update_patient(
            patient_id,
            payload.name,
            payload.age,
            payload.medical_history,
            payload.current_treatment,
            payload.assigned_doctor,
        )
    except RecordError as error:
        raise to_http(error) from error


@app.put("/patients/{patient_id}/reports", response_model=List[str])
def add_patient_report(
    patient_id: str,
    payload: schemas.ReportRequest,
    service: RecordService = Depends(get_service),
) -> List[str]:
    try:
        return service.add_patient_report(patient_id, payload.report)
    except RecordError as error:
        raise to_http(error) from error


@app.get("/patients/{patient_id}/reports", response_model=List[str])
def list_patient_reports(
    patient_id: str, service: RecordService = Depends(get_service)
) -> List[str]:
    try:
        return service.list_patient_reports(patient_id)
    except RecordError as error:
        raise to_http(error) from error


@app.delete(
    "/patients/{patient_id}/reports/{index}", response_model=schemas.MessageResponse
)
def delete_patient_report(
    patient_id: str,
    index: int,
    service: RecordService = Depends(get_service),
) -> schemas.MessageResponse:
    try:
        service.delete_patient_report(patient_id, index)
    except RecordError as error:
        raise to_http(error) from error
    return schemas.MessageResponse(message="Report deleted successfully")


@app.put("/assignDoctor", response_model=schemas.MessageResponse)
def assign_doctor(
    payload: schemas.AssignDoctorRequest,
    service: RecordService = Depends(get_service),
) -> schemas.MessageResponse:
    try:
        service.assign_doctor(payload.patient_id, payload.doctor_id)
    except RecordError as error:
        raise to_http(error) from error
    return schemas.MessageResponse(message="Doctor assigned successfully")


@app.delete("/patients/{patient_id}", response_model=schemas.MessageResponse)
def delete_patient(
    patient_id: str,
    requesting_doctor_id: str = Header(..., alias="X-Doctor-Id"),
    service: RecordService = Depends(get_service),
) -> schemas.MessageResponse:
    try:
        service.delete_patient(patient_id, requesting_doctor_id)
    except RecordError as error:
        raise to_http(error) from error
    return schemas.MessageResponse(message="Patient deleted successfully")


@app.get("/generateReports", response_model=schemas.SummaryReport)
def generate_reports(
    service: RecordService = Depends(get_service),
) -> schemas.SummaryReport:
    try:
        report_data = service.generate_summary_report()
    except RecordError as error:
        raise to_http(error) from error
    return schemas.SummaryReport(report_data=report_data)


@app.get("/audit", response_model=List[schemas.AuditEntry])
def list_audit_entries(
    service: RecordService = Depends(get_service),
) -> List[schemas.AuditEntry]:
    try:
        return service.list_audit_entries()
    except RecordError as error:
        raise to_http(error) from error
