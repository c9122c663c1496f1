"""Patient records."""
from typing import Any, Dict, List

from hospital_services.services.common import (
    EntityService,
    FieldMapper,
    FieldSpec,
    ServiceResult,
    select_by_search,
    utc_today,
)

PATIENT_FIELDS = FieldMapper([
    FieldSpec("id", "id_c"),
    FieldSpec("name", "name_c"),
    FieldSpec("dateOfBirth", "date_of_birth_c"),
    FieldSpec("gender", "gender_c"),
    FieldSpec("contact", "contact_c"),
    FieldSpec("emergencyContact", "emergency_contact_c"),
    FieldSpec("bloodType", "blood_type_c"),
    FieldSpec("allergies", "allergies_c", default=(), is_list=True),
    FieldSpec("currentWard", "current_ward_c"),
    FieldSpec("bedNumber", "bed_number_c"),
    FieldSpec("status", "status_c", default="Stable"),
    FieldSpec("admissionDate", "admission_date_c", on_create=utc_today),
])

# Searched with a case-insensitive substring match
SEARCH_FIELDS = ("name_c", "id_c", "contact_c")


class PatientService(EntityService):
    table_name = "patient_c"
    entity_name = "patient"
    plural_name = "patients"
    id_prefix = "P"
    mapper = PATIENT_FIELDS

    async def search_result(self, query: str) -> ServiceResult:
        """Patients whose name, id or contact contains ``query``."""
        params = select_by_search(self.mapper.backend_fields, SEARCH_FIELDS, query)
        return await self._fetch(params, "patients by search")

    async def search(self, query: str) -> List[Dict[str, Any]]:
        return (await self.search_result(query)).value

    async def get_by_status_result(self, status: str) -> ServiceResult:
        return await self._filter_result("status_c", status, "patients by status")

    async def get_by_status(self, status: str) -> List[Dict[str, Any]]:
        return (await self.get_by_status_result(status)).value
