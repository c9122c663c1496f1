"""Bed records, including occupancy changes (assign / release)."""
from typing import Any, Dict, List, Optional

from hospital_services.services.common import (
    EntityService,
    FieldMapper,
    FieldSpec,
    ServiceResult,
    utc_timestamp,
)

AVAILABLE = "Available"
OCCUPIED = "Occupied"

BED_FIELDS = FieldMapper([
    FieldSpec("id", "id_c"),
    FieldSpec("ward", "ward_c"),
    FieldSpec("number", "number_c"),
    FieldSpec("type", "type_c"),
    FieldSpec("status", "status_c", default=AVAILABLE),
    FieldSpec("patientId", "patient_id_c", default=None),
    FieldSpec("lastCleaned", "last_cleaned_c", on_create=utc_timestamp),
])


class BedService(EntityService):
    """Beds by ward and status.

    Occupied beds carry a patientId; releasing a bed clears it and stamps lastCleaned.
    The data layer does not enforce this, callers go through assign/release.
    """
    table_name = "bed_c"
    entity_name = "bed"
    plural_name = "beds"
    id_prefix = "B"
    mapper = BED_FIELDS

    async def get_by_ward_result(self, ward: str) -> ServiceResult:
        return await self._filter_result("ward_c", ward, "beds by ward")

    async def get_by_ward(self, ward: str) -> List[Dict[str, Any]]:
        return (await self.get_by_ward_result(ward)).value

    async def get_available_beds_result(self) -> ServiceResult:
        return await self._filter_result("status_c", AVAILABLE, "available beds")

    async def get_available_beds(self) -> List[Dict[str, Any]]:
        return (await self.get_available_beds_result()).value

    async def get_occupied_beds_result(self) -> ServiceResult:
        return await self._filter_result("status_c", OCCUPIED, "occupied beds")

    async def get_occupied_beds(self) -> List[Dict[str, Any]]:
        return (await self.get_occupied_beds_result()).value

    async def assign_patient_result(self, bed_id: Any, patient_id: str) -> ServiceResult:
        changes = {"status_c": OCCUPIED, "patient_id_c": patient_id}
        return await self._patch(bed_id, changes, "assign patient to bed")

    async def assign_patient(self, bed_id: Any, patient_id: str) -> Optional[Dict[str, Any]]:
        return (await self.assign_patient_result(bed_id, patient_id)).value

    async def release_patient_result(self, bed_id: Any) -> ServiceResult:
        changes = {"status_c": AVAILABLE, "patient_id_c": None, "last_cleaned_c": utc_timestamp()}
        return await self._patch(bed_id, changes, "release patient from bed")

    async def release_patient(self, bed_id: Any) -> Optional[Dict[str, Any]]:
        return (await self.release_patient_result(bed_id)).value
