"""
Field mapping, query descriptors and write-result aggregation shared by the entity services.
NOTE: Every public service operation resolves to a value; failures become sentinels
([] for lists, None for single records, False for deletes) after being logged.
"""

import enum
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from hospital_services.clients.base import (
    CONTAINS,
    EQUAL_TO,
    GREATER_THAN_OR_EQUAL_TO,
    LESS_THAN_OR_EQUAL_TO,
    Params,
    Record,
    RecordClient,
    Response,
)
from hospital_services.notifications import LogNotifier, Notifier

logger = logging.getLogger(__name__)

LIST_SEPARATOR = ", "


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T08:30:00.123Z."""
    return _utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_today() -> str:
    return _utcnow().date().isoformat()


def timestamp_display_id(prefix: str) -> str:
    """Human-readable id: prefix plus the last three digits of the millisecond clock.

    Not unique: two creates landing on the same three digits collide.
    """
    return f"{prefix}{str(int(time.time() * 1000))[-3:]}"


def uuid_display_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:8].upper()}"


# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSpec:
    """One UI field and the backend key it is stored under."""
    ui: str
    backend: str
    default: Any = ""
    on_create: Optional[Callable[[], Any]] = None
    is_list: bool = False

    def read_default(self) -> Any:
        return list(self.default) if self.is_list else self.default

    def create_default(self) -> Any:
        return self.on_create() if self.on_create else self.read_default()


class FieldMapper:
    """Translates between UI entities (camelCase) and backend records (snake_case + _c)."""

    def __init__(self, fields: Sequence[FieldSpec]):
        self.fields = tuple(fields)

    @property
    def backend_fields(self) -> List[str]:
        return ["Id"] + [f.backend for f in self.fields]

    def to_ui(self, record: Optional[Record], fallback: Optional[Record] = None) -> Dict[str, Any]:
        """Map a backend record to a UI entity, substituting defaults for absent or empty values."""
        record = record or {}
        entity: Dict[str, Any] = {"Id": record.get("Id")}
        for spec in self.fields:
            value = record.get(spec.backend)
            if not value and fallback:
                value = fallback.get(spec.backend)
            if not value:
                entity[spec.ui] = spec.read_default()
            elif spec.is_list:
                entity[spec.ui] = _split_list(value)
            else:
                entity[spec.ui] = value
        return entity

    def to_backend(self, entity: Dict[str, Any]) -> Record:
        """Map the UI keys present in ``entity``; absent keys are left out, no defaults applied."""
        record: Record = {}
        for spec in self.fields:
            if spec.ui not in entity:
                continue
            value = entity[spec.ui]
            if spec.is_list and isinstance(value, (list, tuple)):
                value = LIST_SEPARATOR.join(str(item) for item in value)
            record[spec.backend] = value
        return record

    def with_create_defaults(self, entity: Dict[str, Any]) -> Dict[str, Any]:
        """Return a full entity for creation, filling absent or empty fields."""
        complete = {}
        for spec in self.fields:
            value = entity.get(spec.ui)
            complete[spec.ui] = value if value else spec.create_default()
        return complete


def _split_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value]
    return [item.strip() for item in str(value).split(",")]


# ---------------------------------------------------------------------------
# Query descriptors
# ---------------------------------------------------------------------------

def coerce_record_id(record_id: Any) -> int:
    """Coerce a surrogate key to int; raises ValueError for anything non-numeric."""
    if isinstance(record_id, bool):
        raise ValueError(f"Invalid record id: {record_id!r}")
    if isinstance(record_id, int):
        return record_id
    return int(str(record_id).strip())


def select_all(fields: Sequence[str]) -> Params:
    return {"fields": [{"field": {"Name": name}} for name in fields]}


def select_by_id(fields: Sequence[str], record_id: Any) -> Tuple[int, Params]:
    return coerce_record_id(record_id), select_all(fields)


def predicate(field_name: str, operator: str, values: Sequence[Any]) -> Dict[str, Any]:
    return {"FieldName": field_name, "Operator": operator, "Values": list(values)}


def select_by_filter(fields: Sequence[str], field_name: str, operator: str, values: Sequence[Any]) -> Params:
    params = select_all(fields)
    params["where"] = [predicate(field_name, operator, values)]
    return params


def select_by_range(fields: Sequence[str], field_name: str, start: Any, end: Any) -> Params:
    """Inclusive range: both predicates must hold."""
    params = select_all(fields)
    params["where"] = [
        predicate(field_name, GREATER_THAN_OR_EQUAL_TO, [start]),
        predicate(field_name, LESS_THAN_OR_EQUAL_TO, [end]),
    ]
    return params


def select_by_search(fields: Sequence[str], search_fields: Sequence[str], query: str) -> Params:
    """Match ``query`` as a substring of any of ``search_fields``."""
    params = select_all(fields)
    params["whereGroups"] = [{
        "operator": "OR",
        "subGroups": [{
            "conditions": [
                {"fieldName": name, "operator": CONTAINS, "values": [query]}
                for name in search_fields
            ],
            "operator": "OR",
        }],
    }]
    return params


# ---------------------------------------------------------------------------
# Results and aggregation
# ---------------------------------------------------------------------------

class Outcome(enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    INVALID = "invalid"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class ServiceResult:
    """What an operation produced, and why it produced nothing when it did."""
    outcome: Outcome
    value: Any = None
    messages: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


def _field_error_text(error: Any) -> str:
    if isinstance(error, dict):
        label = error.get("fieldLabel")
        message = error.get("message") or error.get("error") or ""
        return f"{label}: {message}" if label else str(message)
    return str(error)


def _report_failures(failed: List[Dict[str, Any]], notifier: Notifier) -> List[str]:
    messages = []
    for result in failed:
        for error in result.get("errors") or []:
            messages.append(_field_error_text(error))
            notifier.error(messages[-1])
        if result.get("message"):
            messages.append(result["message"])
            notifier.error(messages[-1])
    return messages


def _partition(response: Response, notifier: Notifier, description: str) -> Tuple[Optional[List], List[str]]:
    """Split a bulk-write response into successful results and reported messages.

    Returns ``(None, messages)`` when the request as a whole was rejected.
    """
    if not isinstance(response, dict) or not response.get("success"):
        message = (response.get("message") if isinstance(response, dict) else None) or f"Failed to {description}"
        logger.error(message)
        notifier.error(message)
        return None, [message]

    results = [r for r in response.get("results") or [] if isinstance(r, dict)]
    successful = [r for r in results if r.get("success")]
    failed = [r for r in results if not r.get("success")]

    messages: List[str] = []
    if failed:
        logger.error(f"Failed to {description} for {len(failed)} records: {json.dumps(failed, default=str)}")
        messages = _report_failures(failed, notifier)
    return successful, messages


def aggregate_write(
    response: Response,
    mapper: FieldMapper,
    notifier: Notifier,
    description: str,
    fallback: Optional[Record] = None
) -> ServiceResult:
    """Aggregate a create/update response into the first successful record's UI entity."""
    successful, messages = _partition(response, notifier, description)
    if successful is None:
        return ServiceResult(Outcome.REJECTED, None, messages)
    if successful:
        return ServiceResult(Outcome.OK, mapper.to_ui(successful[0].get("data"), fallback), messages)
    if messages:
        return ServiceResult(Outcome.INVALID, None, messages)
    return ServiceResult(Outcome.REJECTED, None, [f"No records returned when trying to {description}"])


def aggregate_delete(response: Response, notifier: Notifier, description: str) -> ServiceResult:
    """True when at least one record was deleted."""
    successful, messages = _partition(response, notifier, description)
    if successful is None:
        return ServiceResult(Outcome.REJECTED, False, messages)
    if successful:
        return ServiceResult(Outcome.OK, True, messages)
    if messages:
        return ServiceResult(Outcome.INVALID, False, messages)
    return ServiceResult(Outcome.NOT_FOUND, False, [f"No records returned when trying to {description}"])


# ---------------------------------------------------------------------------
# Base service
# ---------------------------------------------------------------------------

class EntityService:
    """CRUD over one backend table, with filtered reads built on the same path.

    Subclasses declare ``table_name``, ``entity_name``, ``plural_name``,
    ``id_prefix`` and ``mapper``.
    """

    table_name: str = ""
    entity_name: str = ""
    plural_name: str = ""
    id_prefix: str = ""
    mapper: FieldMapper = FieldMapper(())

    def __init__(
        self,
        client: RecordClient,
        notifier: Optional[Notifier] = None,
        id_factory: Callable[[str], str] = timestamp_display_id
    ):
        self.client = client
        self.notifier = notifier or LogNotifier()
        self.id_factory = id_factory

    def display_id_prefix(self, data: Dict[str, Any]) -> str:
        return self.id_prefix

    # Reads

    async def _fetch(self, params: Params, context: str) -> ServiceResult:
        try:
            response = await self.client.fetch_records(self.table_name, params)
        except Exception as e:
            logger.error(f"Error fetching {context}: {e}")
            return ServiceResult(Outcome.TRANSPORT_ERROR, [], [str(e)])

        if not isinstance(response, dict) or response.get("success") is False:
            message = (response.get("message") if isinstance(response, dict) else None) or f"Failed to fetch {context}"
            logger.error(message)
            return ServiceResult(Outcome.REJECTED, [], [message])

        rows = response.get("data") or []
        return ServiceResult(Outcome.OK, [self.mapper.to_ui(row) for row in rows])

    async def get_all_result(self) -> ServiceResult:
        return await self._fetch(select_all(self.mapper.backend_fields), self.plural_name)

    async def get_all(self) -> List[Dict[str, Any]]:
        return (await self.get_all_result()).value

    async def get_by_id_result(self, record_id: Any) -> ServiceResult:
        try:
            key, params = select_by_id(self.mapper.backend_fields, record_id)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid {self.entity_name} id {record_id!r}: {e}")
            return ServiceResult(Outcome.INVALID, None, [f"Invalid {self.entity_name} id: {record_id}"])

        try:
            response = await self.client.get_record_by_id(self.table_name, key, params)
        except Exception as e:
            logger.error(f"Error fetching {self.entity_name} {record_id}: {e}")
            return ServiceResult(Outcome.TRANSPORT_ERROR, None, [str(e)])

        if not isinstance(response, dict) or not response.get("data"):
            return ServiceResult(Outcome.NOT_FOUND, None, [f"{self.entity_name.capitalize()} {record_id} not found"])
        return ServiceResult(Outcome.OK, self.mapper.to_ui(response["data"]))

    async def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        return (await self.get_by_id_result(record_id)).value

    # Writes

    async def create_result(self, data: Dict[str, Any]) -> ServiceResult:
        entity = self.mapper.with_create_defaults(data)
        entity["id"] = self.id_factory(self.display_id_prefix(data))
        record = self.mapper.to_backend(entity)

        try:
            response = await self.client.create_record(self.table_name, {"records": [record]})
        except Exception as e:
            logger.error(f"Error creating {self.entity_name}: {e}")
            return ServiceResult(Outcome.TRANSPORT_ERROR, None, [str(e)])
        return aggregate_write(response, self.mapper, self.notifier, f"create {self.entity_name}", fallback=record)

    async def create(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return (await self.create_result(data)).value

    async def _patch(self, record_id: Any, changes: Record, action: str) -> ServiceResult:
        """Send a partial update: only the backend keys in ``changes`` are written."""
        try:
            key = coerce_record_id(record_id)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid {self.entity_name} id {record_id!r}: {e}")
            return ServiceResult(Outcome.INVALID, None, [f"Invalid {self.entity_name} id: {record_id}"])

        try:
            response = await self.client.update_record(self.table_name, {"records": [{"Id": key, **changes}]})
        except Exception as e:
            logger.error(f"Error trying to {action}: {e}")
            return ServiceResult(Outcome.TRANSPORT_ERROR, None, [str(e)])
        return aggregate_write(response, self.mapper, self.notifier, action)

    async def update_result(self, record_id: Any, data: Dict[str, Any]) -> ServiceResult:
        return await self._patch(record_id, self.mapper.to_backend(data), f"update {self.entity_name}")

    async def update(self, record_id: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return (await self.update_result(record_id, data)).value

    async def delete_result(self, record_id: Any) -> ServiceResult:
        try:
            key = coerce_record_id(record_id)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid {self.entity_name} id {record_id!r}: {e}")
            return ServiceResult(Outcome.INVALID, False, [f"Invalid {self.entity_name} id: {record_id}"])

        try:
            response = await self.client.delete_record(self.table_name, {"RecordIds": [key]})
        except Exception as e:
            logger.error(f"Error deleting {self.entity_name}: {e}")
            return ServiceResult(Outcome.TRANSPORT_ERROR, False, [str(e)])
        return aggregate_delete(response, self.notifier, f"delete {self.entity_name}")

    async def delete(self, record_id: Any) -> bool:
        return (await self.delete_result(record_id)).value

    # Filters

    async def _filter_result(self, field_name: str, value: Any, context: str) -> ServiceResult:
        params = select_by_filter(self.mapper.backend_fields, field_name, EQUAL_TO, [value])
        return await self._fetch(params, context)
