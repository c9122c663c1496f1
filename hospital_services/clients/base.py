"""
Record client contract shared by every service.

Read descriptors look like::

    {"fields": [{"field": {"Name": "Id"}}, ...],
     "where": [{"FieldName": "status_c", "Operator": "EqualTo", "Values": ["Available"]}],
     "whereGroups": [{"operator": "OR", "subGroups": [{"operator": "OR", "conditions": [
         {"fieldName": "name_c", "operator": "Contains", "values": ["ann"]}]}]}]}

Reads answer ``{"data": [...]}`` (or ``{"data": {...}}`` for a single record).
Writes take ``{"records": [...]}`` or ``{"RecordIds": [...]}`` and answer
``{"success": bool, "message": str, "results": [{"success", "data", "errors", "message"}]}``.
"""
from typing import Any, Dict, Optional, Protocol

Record = Dict[str, Any]
Params = Dict[str, Any]
Response = Dict[str, Any]

# Operators understood in "where" predicates
EQUAL_TO = "EqualTo"
GREATER_THAN_OR_EQUAL_TO = "GreaterThanOrEqualTo"
LESS_THAN_OR_EQUAL_TO = "LessThanOrEqualTo"
CONTAINS = "Contains"

OPERATORS = (EQUAL_TO, GREATER_THAN_OR_EQUAL_TO, LESS_THAN_OR_EQUAL_TO, CONTAINS)


class RecordClient(Protocol):
    """Asynchronous table client used by the services."""

    async def fetch_records(self, table: str, params: Params) -> Optional[Response]:
        ...

    async def get_record_by_id(self, table: str, record_id: int, params: Params) -> Optional[Response]:
        ...

    async def create_record(self, table: str, params: Params) -> Response:
        ...

    async def update_record(self, table: str, params: Params) -> Response:
        ...

    async def delete_record(self, table: str, params: Params) -> Response:
        ...
