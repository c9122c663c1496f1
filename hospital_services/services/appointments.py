"""Appointment records: scheduling reads by date and department."""
from typing import Any, Dict, List

from hospital_services.services.common import (
    EntityService,
    FieldMapper,
    FieldSpec,
    ServiceResult,
    select_by_range,
    utc_today,
)

DEFAULT_DURATION_MINUTES = 30

APPOINTMENT_FIELDS = FieldMapper([
    FieldSpec("id", "id_c"),
    FieldSpec("patientId", "patient_id_c"),
    FieldSpec("doctorId", "doctor_id_c"),
    FieldSpec("department", "department_c"),
    FieldSpec("dateTime", "date_time_c"),
    FieldSpec("duration", "duration_c", default=DEFAULT_DURATION_MINUTES),
    FieldSpec("type", "type_c"),
    FieldSpec("status", "status_c", default="Scheduled"),
    FieldSpec("notes", "notes_c"),
])


class AppointmentService(EntityService):
    table_name = "appointment_c"
    entity_name = "appointment"
    plural_name = "appointments"
    id_prefix = "A"
    mapper = APPOINTMENT_FIELDS

    async def get_by_date_range_result(self, start_date: str, end_date: str) -> ServiceResult:
        """Appointments whose dateTime falls within [start_date, end_date]."""
        params = select_by_range(self.mapper.backend_fields, "date_time_c", start_date, end_date)
        return await self._fetch(params, "appointments by date range")

    async def get_by_date_range(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        return (await self.get_by_date_range_result(start_date, end_date)).value

    async def get_by_department_result(self, department: str) -> ServiceResult:
        return await self._filter_result("department_c", department, "appointments by department")

    async def get_by_department(self, department: str) -> List[Dict[str, Any]]:
        return (await self.get_by_department_result(department)).value

    async def get_todays_appointments_result(self) -> ServiceResult:
        # NOTE: "today" is the UTC calendar day
        today = utc_today()
        params = select_by_range(
            self.mapper.backend_fields, "date_time_c", f"{today}T00:00:00Z", f"{today}T23:59:59Z"
        )
        return await self._fetch(params, "today's appointments")

    async def get_todays_appointments(self) -> List[Dict[str, Any]]:
        return (await self.get_todays_appointments_result()).value
