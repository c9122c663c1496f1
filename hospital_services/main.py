from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Any, Callable, Dict, List, Optional

from hospital_services import __version__
from hospital_services.clients.base import RecordClient
from hospital_services.clients.postgres import create_record_client
from hospital_services.database import CORS_ORIGINS
from hospital_services.database import create_tables, test_connection
from hospital_services.services import (
    AppointmentService,
    BedService,
    EntityService,
    Outcome,
    PatientService,
    ServiceResult,
    StaffService,
)


# NOTE: Initialize FastAPI over the record backend for the ward management UI
app = FastAPI(
    title="Hospital Data Services API",
    description="Appointments, beds, patients and staff for the ward management application",
    version=__version__
)

STATUS_BY_OUTCOME = {
    Outcome.NOT_FOUND: 404,
    Outcome.INVALID: 422,
    Outcome.REJECTED: 400,
    Outcome.TRANSPORT_ERROR: 502,
}


@app.on_event("startup")
async def startup_event():
    """Verify the database, create record tables and set up the record client."""
    if not test_connection():
        raise RuntimeError("Database connection failed")
    create_tables()
    app.state.record_client = await create_record_client()


@app.on_event("shutdown")
async def shutdown_event():
    client = getattr(app.state, "record_client", None)
    if client is not None:
        await client.disconnect()


# NOTE: CORS configuration for the frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_record_client(request: Request) -> RecordClient:
    """Dependency returning the shared record client."""
    return request.app.state.record_client


def service_dependency(service_cls) -> Callable[..., EntityService]:
    def provide(client: RecordClient = Depends(get_record_client)) -> EntityService:
        return service_cls(client)
    return provide


def unwrap(result: ServiceResult) -> Any:
    """Return the value of a successful result or raise the matching HTTP error."""
    if result.ok:
        return result.value
    raise HTTPException(
        status_code=STATUS_BY_OUTCOME[result.outcome],
        detail={"outcome": result.outcome.value, "messages": result.messages}
    )


def crud_routes(router: APIRouter, service_cls) -> None:
    """Register list/get/create/update/delete for one entity service."""
    provide = service_dependency(service_cls)

    @router.get("/{record_id}")
    async def get_one(record_id: str, service: EntityService = Depends(provide)) -> Dict[str, Any]:
        return unwrap(await service.get_by_id_result(record_id))

    @router.post("/", status_code=201)
    async def create(data: Dict[str, Any] = Body(...), service: EntityService = Depends(provide)) -> Dict[str, Any]:
        return unwrap(await service.create_result(data))

    @router.put("/{record_id}")
    async def update(
        record_id: str,
        data: Dict[str, Any] = Body(...),
        service: EntityService = Depends(provide)
    ) -> Dict[str, Any]:
        return unwrap(await service.update_result(record_id, data))

    @router.delete("/{record_id}")
    async def delete(record_id: str, service: EntityService = Depends(provide)) -> Dict[str, bool]:
        return {"deleted": unwrap(await service.delete_result(record_id))}


# Appointments
appointments = APIRouter(prefix="/appointments", tags=["appointments"])
get_appointments = service_dependency(AppointmentService)


@appointments.get("/")
async def list_appointments(
    start: Optional[str] = None,
    end: Optional[str] = None,
    department: Optional[str] = None,
    service: AppointmentService = Depends(get_appointments)
) -> List[Dict[str, Any]]:
    """List appointments, optionally within [start, end] or for one department."""
    if start and end:
        return unwrap(await service.get_by_date_range_result(start, end))
    if department:
        return unwrap(await service.get_by_department_result(department))
    return unwrap(await service.get_all_result())


@appointments.get("/today")
async def todays_appointments(service: AppointmentService = Depends(get_appointments)) -> List[Dict[str, Any]]:
    return unwrap(await service.get_todays_appointments_result())


crud_routes(appointments, AppointmentService)

# Beds
beds = APIRouter(prefix="/beds", tags=["beds"])
get_beds = service_dependency(BedService)


@beds.get("/")
async def list_beds(ward: Optional[str] = None, service: BedService = Depends(get_beds)) -> List[Dict[str, Any]]:
    if ward:
        return unwrap(await service.get_by_ward_result(ward))
    return unwrap(await service.get_all_result())


@beds.get("/available")
async def available_beds(service: BedService = Depends(get_beds)) -> List[Dict[str, Any]]:
    return unwrap(await service.get_available_beds_result())


@beds.get("/occupied")
async def occupied_beds(service: BedService = Depends(get_beds)) -> List[Dict[str, Any]]:
    return unwrap(await service.get_occupied_beds_result())


@beds.post("/{record_id}/assign")
async def assign_bed(
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    service: BedService = Depends(get_beds)
) -> Dict[str, Any]:
    """Mark a bed occupied by ``patientId``."""
    patient_id = payload.get("patientId")
    if not patient_id:
        raise HTTPException(status_code=422, detail="patientId is required")
    return unwrap(await service.assign_patient_result(record_id, patient_id))


@beds.post("/{record_id}/release")
async def release_bed(record_id: str, service: BedService = Depends(get_beds)) -> Dict[str, Any]:
    return unwrap(await service.release_patient_result(record_id))


crud_routes(beds, BedService)

# Patients
patients = APIRouter(prefix="/patients", tags=["patients"])
get_patients = service_dependency(PatientService)


@patients.get("/")
async def list_patients(status: Optional[str] = None, service: PatientService = Depends(get_patients)) -> List[Dict[str, Any]]:
    if status:
        return unwrap(await service.get_by_status_result(status))
    return unwrap(await service.get_all_result())


@patients.get("/search")
async def search_patients(q: str, service: PatientService = Depends(get_patients)) -> List[Dict[str, Any]]:
    """Search patients by name, id or contact."""
    return unwrap(await service.search_result(q))


crud_routes(patients, PatientService)

# Staff
staff = APIRouter(prefix="/staff", tags=["staff"])
get_staff = service_dependency(StaffService)


@staff.get("/")
async def list_staff(
    department: Optional[str] = None,
    role: Optional[str] = None,
    shift: Optional[str] = None,
    service: StaffService = Depends(get_staff)
) -> List[Dict[str, Any]]:
    if department:
        return unwrap(await service.get_by_department_result(department))
    if role:
        return unwrap(await service.get_by_role_result(role))
    if shift:
        return unwrap(await service.get_by_shift_result(shift))
    return unwrap(await service.get_all_result())


crud_routes(staff, StaffService)

for router in (appointments, beds, patients, staff):
    app.include_router(router)


@app.get("/health/")
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint for monitoring database connectivity.
    NOTE: System health monitoring for the ward application
    """
    db_status = "healthy" if test_connection() else "unhealthy"
    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "service": "hospital_data_services"
    }


@app.get("/")
async def root() -> Dict[str, str]:
    """Root endpoint with API information."""
    return {
        "message": "Hospital Data Services API",
        "version": __version__,
        "endpoints": "/docs for API documentation"
    }
