"""
Shared fixtures for the service tests.

``FakeRecordClient`` speaks the record client envelope against in-memory tables,
so services can be exercised without a database.
"""
import copy
from collections import defaultdict

import pytest

from hospital_services.notifications import CollectingNotifier


def _matches(row, field_name, operator, values):
    value = row.get(field_name)
    if operator == "EqualTo":
        return value in values
    if value is None:
        return False
    if operator == "GreaterThanOrEqualTo":
        return value >= values[0]
    if operator == "LessThanOrEqualTo":
        return value <= values[0]
    if operator == "Contains":
        return any(str(v).lower() in str(value).lower() for v in values)
    raise AssertionError(f"unexpected operator {operator}")


def _group_matches(row, group):
    outcomes = []
    for sub_group in group.get("subGroups", []):
        checks = [_matches(row, c["fieldName"], c["operator"], c["values"]) for c in sub_group["conditions"]]
        outcomes.append(any(checks) if sub_group.get("operator") == "OR" else all(checks))
    return any(outcomes) if group.get("operator") == "OR" else all(outcomes)


class FakeRecordClient:
    def __init__(self):
        self.tables = defaultdict(dict)
        self.calls = []
        self.canned = {}
        self._next_id = 1

    def respond(self, method, response):
        """Answer the next call to ``method`` with ``response`` (an exception is raised)."""
        self.canned[method] = response

    def seed(self, table, **record):
        record_id = self._next_id
        self._next_id += 1
        self.tables[table][record_id] = {"Id": record_id, **record}
        return record_id

    def _canned(self, method):
        if method not in self.canned:
            return None
        response = self.canned.pop(method)
        if isinstance(response, Exception):
            raise response
        return response

    @staticmethod
    def _project(row, params):
        names = [f["field"]["Name"] for f in params.get("fields", [])]
        return {name: row.get(name) for name in names} if names else dict(row)

    async def fetch_records(self, table, params):
        self.calls.append(("fetch_records", table, copy.deepcopy(params)))
        canned = self._canned("fetch_records")
        if canned is not None:
            return canned
        rows = list(self.tables[table].values())
        for condition in params.get("where", []):
            rows = [r for r in rows if _matches(r, condition["FieldName"], condition["Operator"], condition["Values"])]
        for group in params.get("whereGroups", []):
            rows = [r for r in rows if _group_matches(r, group)]
        return {"success": True, "data": [self._project(r, params) for r in rows]}

    async def get_record_by_id(self, table, record_id, params):
        self.calls.append(("get_record_by_id", table, record_id))
        canned = self._canned("get_record_by_id")
        if canned is not None:
            return canned
        row = self.tables[table].get(record_id)
        return {"success": True, "data": self._project(row, params) if row else None}

    async def create_record(self, table, params):
        self.calls.append(("create_record", table, copy.deepcopy(params)))
        canned = self._canned("create_record")
        if canned is not None:
            return canned
        results = []
        for record in params["records"]:
            record_id = self.seed(table, **record)
            results.append({"success": True, "data": dict(self.tables[table][record_id])})
        return {"success": True, "results": results}

    async def update_record(self, table, params):
        self.calls.append(("update_record", table, copy.deepcopy(params)))
        canned = self._canned("update_record")
        if canned is not None:
            return canned
        results = []
        for record in params["records"]:
            row = self.tables[table].get(record["Id"])
            if row is None:
                results.append({"success": False, "message": f"Record {record['Id']} not found"})
                continue
            row.update(record)
            results.append({"success": True, "data": dict(row)})
        return {"success": True, "results": results}

    async def delete_record(self, table, params):
        self.calls.append(("delete_record", table, copy.deepcopy(params)))
        canned = self._canned("delete_record")
        if canned is not None:
            return canned
        results = []
        for record_id in params["RecordIds"]:
            if self.tables[table].pop(record_id, None) is None:
                results.append({"success": False, "message": f"Record {record_id} not found"})
            else:
                results.append({"success": True})
        return {"success": True, "results": results}

    def last_call(self, method):
        return [call for call in self.calls if call[0] == method][-1]


@pytest.fixture
def client():
    return FakeRecordClient()


@pytest.fixture
def notifier():
    return CollectingNotifier()
