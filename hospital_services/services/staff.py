"""Staff records; the generated id prefix follows the role."""
from typing import Any, Dict, List

from hospital_services.services.common import EntityService, FieldMapper, FieldSpec, ServiceResult

ROLE_PREFIXES = {"Doctor": "D", "Nurse": "N"}
DEFAULT_ROLE_PREFIX = "A"

STAFF_FIELDS = FieldMapper([
    FieldSpec("id", "id_c"),
    FieldSpec("name", "name_c"),
    FieldSpec("role", "role_c"),
    FieldSpec("department", "department_c"),
    FieldSpec("shift", "shift_c"),
    FieldSpec("contact", "contact_c"),
    FieldSpec("specialization", "specialization_c"),
])


class StaffService(EntityService):
    table_name = "staff_c"
    entity_name = "staff member"
    plural_name = "staff"
    id_prefix = DEFAULT_ROLE_PREFIX
    mapper = STAFF_FIELDS

    def display_id_prefix(self, data: Dict[str, Any]) -> str:
        role = data.get("role")
        if not isinstance(role, str):
            return DEFAULT_ROLE_PREFIX
        return ROLE_PREFIXES.get(role, DEFAULT_ROLE_PREFIX)

    async def get_by_department_result(self, department: str) -> ServiceResult:
        return await self._filter_result("department_c", department, "staff by department")

    async def get_by_department(self, department: str) -> List[Dict[str, Any]]:
        return (await self.get_by_department_result(department)).value

    async def get_by_role_result(self, role: str) -> ServiceResult:
        return await self._filter_result("role_c", role, "staff by role")

    async def get_by_role(self, role: str) -> List[Dict[str, Any]]:
        return (await self.get_by_role_result(role)).value

    async def get_by_shift_result(self, shift: str) -> ServiceResult:
        return await self._filter_result("shift_c", shift, "staff by shift")

    async def get_by_shift(self, shift: str) -> List[Dict[str, Any]]:
        return (await self.get_by_shift_result(shift)).value
