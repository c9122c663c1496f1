"""
PostgreSQL record client for the hospital data services.
Implements the record client contract (fetch/get/create/update/delete envelopes)
on top of an asyncpg connection pool and the *_c tables from models.py.
"""

import json
import asyncpg
from typing import Any, Dict, List, Optional, Tuple
import logging

from hospital_services import database
from hospital_services.clients.base import (
    EQUAL_TO,
    GREATER_THAN_OR_EQUAL_TO,
    LESS_THAN_OR_EQUAL_TO,
    OPERATORS,
    Params,
    Record,
    Response,
)
from hospital_services.models import table_columns

# NOTE: Descriptor-to-SQL translation keeps every identifier whitelisted and every value parameterised

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PRIMARY_KEY = "Id"


class DescriptorError(ValueError):
    """Raised when a query descriptor references unknown tables, fields or operators."""


def _quote(identifier: str) -> str:
    return f'"{identifier}"'


def _like_escape(value: Any) -> str:
    text = str(value)
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _check_field(field: str, columns: List[str]) -> str:
    if field not in columns:
        raise DescriptorError(f"Unknown field: {field}")
    return _quote(field)


def _condition_sql(field: str, operator: str, values: List[Any], columns: List[str], args: List[Any]) -> str:
    """Render one predicate, appending its parameters to ``args``."""
    column = _check_field(field, columns)
    if operator not in OPERATORS:
        raise DescriptorError(f"Unsupported operator: {operator}")
    if not values:
        raise DescriptorError(f"No values given for {field}")

    if operator == EQUAL_TO:
        if len(values) == 1:
            args.append(values[0])
            return f"{column} = ${len(args)}"
        args.append(list(values))
        return f"{column} = ANY(${len(args)})"

    if operator == GREATER_THAN_OR_EQUAL_TO:
        args.append(values[0])
        return f"{column} >= ${len(args)}"

    if operator == LESS_THAN_OR_EQUAL_TO:
        args.append(values[0])
        return f"{column} <= ${len(args)}"

    # Contains: any of the values, case-insensitive
    clauses = []
    for value in values:
        args.append(f"%{_like_escape(value)}%")
        clauses.append(f"{column}::text ILIKE ${len(args)}")
    return clauses[0] if len(clauses) == 1 else "(" + " OR ".join(clauses) + ")"


def _join_operator(operator: Optional[str]) -> str:
    joined = (operator or "AND").upper()
    if joined not in ("AND", "OR"):
        raise DescriptorError(f"Unsupported group operator: {operator}")
    return joined


def _group_sql(group: Dict[str, Any], columns: List[str], args: List[Any]) -> str:
    """Render a whereGroups entry: subGroups of conditions joined by the group operator."""
    parts = []
    for sub_group in group.get("subGroups", []):
        conditions = [
            _condition_sql(c.get("fieldName"), c.get("operator"), c.get("values", []), columns, args)
            for c in sub_group.get("conditions", [])
        ]
        if conditions:
            parts.append("(" + f" {_join_operator(sub_group.get('operator'))} ".join(conditions) + ")")

    for condition in group.get("conditions", []):
        parts.append(_condition_sql(condition.get("fieldName"), condition.get("operator"),
                                    condition.get("values", []), columns, args))

    if not parts:
        return ""
    return "(" + f" {_join_operator(group.get('operator'))} ".join(parts) + ")"


def build_select(
    table: str,
    params: Params,
    columns: List[str],
    record_id: Optional[int] = None
) -> Tuple[str, List[Any]]:
    """Translate a read descriptor into a parameterised SELECT."""
    fields = [f["field"]["Name"] for f in (params or {}).get("fields", [])] or list(columns)
    select_list = ", ".join(_check_field(field, columns) for field in fields)

    query = f"SELECT {select_list} FROM {_quote(table)} WHERE 1=1"
    args: List[Any] = []

    if record_id is not None:
        args.append(record_id)
        query += f" AND {_quote(PRIMARY_KEY)} = ${len(args)}"

    for condition in (params or {}).get("where", []):
        clause = _condition_sql(condition.get("FieldName"), condition.get("Operator"),
                                condition.get("Values", []), columns, args)
        query += f" AND {clause}"

    for group in (params or {}).get("whereGroups", []):
        clause = _group_sql(group, columns, args)
        if clause:
            query += f" AND {clause}"

    query += f" ORDER BY {_quote(PRIMARY_KEY)}"
    return query, args


def build_insert(table: str, record: Record, columns: List[str]) -> Tuple[str, List[Any]]:
    fields = [field for field in record if field != PRIMARY_KEY]
    if not fields:
        return f"INSERT INTO {_quote(table)} DEFAULT VALUES RETURNING *", []

    column_list = ", ".join(_check_field(field, columns) for field in fields)
    placeholders = ", ".join(f"${i}" for i in range(1, len(fields) + 1))
    query = f"INSERT INTO {_quote(table)} ({column_list}) VALUES ({placeholders}) RETURNING *"
    return query, [record[field] for field in fields]


def build_update(table: str, record: Record, columns: List[str]) -> Tuple[str, List[Any]]:
    if record.get(PRIMARY_KEY) is None:
        raise DescriptorError(f"{PRIMARY_KEY} is required for updates")

    fields = [field for field in record if field != PRIMARY_KEY]
    if not fields:
        raise DescriptorError("No fields to update")

    assignments = ", ".join(
        f"{_check_field(field, columns)} = ${i}" for i, field in enumerate(fields, start=1)
    )
    args = [record[field] for field in fields]
    args.append(int(record[PRIMARY_KEY]))
    query = (
        f"UPDATE {_quote(table)} SET {assignments} "
        f"WHERE {_quote(PRIMARY_KEY)} = ${len(args)} RETURNING *"
    )
    return query, args


def _field_errors(record: Record, columns: List[str]) -> List[Dict[str, str]]:
    return [
        {"fieldLabel": field, "message": "Unknown field"}
        for field in record
        if field not in columns
    ]


class PostgresRecordClient:
    """Serves the record client contract from PostgreSQL tables through an asyncpg pool."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "hospital_records",
        username: str = "hospital_app",
        password: str = "password",
        schema: str = "public",
        columns: Optional[Dict[str, List[str]]] = None
    ):
        self.host = host
        self.port = port
        self.database = database
        self.username = username
        self.password = password
        self.schema = schema
        self.columns = columns or table_columns()
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Establish database connection pool."""
        try:
            self.pool = await asyncpg.create_pool(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.username,
                password=self.password,
                command_timeout=60,
                server_settings={
                    'search_path': f'{self.schema},public'
                },
                min_size=2,
                max_size=10
            )
            logger.info(f"Connected to PostgreSQL database: {self.database}")

        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            raise

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database connection closed")

    async def _ensure_pool(self) -> asyncpg.Pool:
        if not self.pool:
            await self.connect()
        return self.pool

    async def execute_query(self, query: str, *args) -> List[Dict]:
        """Execute a query and return results."""
        pool = await self._ensure_pool()

        async with pool.acquire() as connection:
            try:
                rows = await connection.fetch(query, *args)
                return [dict(row) for row in rows]
            except Exception as e:
                logger.error(f"Query execution failed: {e}")
                raise

    def _unknown_table(self, table: str) -> Optional[Response]:
        if table in self.columns:
            return None
        logger.error(f"Unknown record table: {table}")
        return {"success": False, "message": f"Unknown table: {table}"}

    async def fetch_records(self, table: str, params: Params) -> Response:
        rejected = self._unknown_table(table)
        if rejected:
            return rejected

        try:
            query, args = build_select(table, params, self.columns[table])
        except DescriptorError as e:
            logger.error(f"Invalid query for {table}: {e}")
            return {"success": False, "message": str(e)}

        rows = await self.execute_query(query, *args)
        return {"success": True, "data": rows}

    async def get_record_by_id(self, table: str, record_id: int, params: Params) -> Response:
        rejected = self._unknown_table(table)
        if rejected:
            return rejected

        try:
            query, args = build_select(table, params, self.columns[table], record_id=int(record_id))
        except DescriptorError as e:
            logger.error(f"Invalid query for {table}: {e}")
            return {"success": False, "message": str(e)}

        rows = await self.execute_query(query, *args)
        return {"success": True, "data": rows[0] if rows else None}

    async def _write_each(self, table: str, items: List[Any], write_one) -> Response:
        """Run one statement per item; item failures become failed results."""
        pool = await self._ensure_pool()
        results = []

        async with pool.acquire() as connection:
            for item in items:
                try:
                    results.append(await write_one(connection, item))
                except ValueError as e:
                    results.append({"success": False, "message": str(e)})
                except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                    logger.warning(f"Skipped {table} record: {e}")
                    results.append({"success": False, "message": str(e)})

        return {"success": True, "results": results}

    async def create_record(self, table: str, params: Params) -> Response:
        rejected = self._unknown_table(table)
        if rejected:
            return rejected
        columns = self.columns[table]

        async def insert(connection, record: Record) -> Dict[str, Any]:
            errors = _field_errors(record, columns)
            if errors:
                return {"success": False, "errors": errors, "message": "Record has unknown fields"}
            query, args = build_insert(table, record, columns)
            row = await connection.fetchrow(query, *args)
            return {"success": True, "data": dict(row)}

        response = await self._write_each(table, params.get("records", []), insert)
        logger.info(f"Create on {table}: {_summary(response)}")
        return response

    async def update_record(self, table: str, params: Params) -> Response:
        rejected = self._unknown_table(table)
        if rejected:
            return rejected
        columns = self.columns[table]

        async def update(connection, record: Record) -> Dict[str, Any]:
            errors = _field_errors(record, columns)
            if errors:
                return {"success": False, "errors": errors, "message": "Record has unknown fields"}
            query, args = build_update(table, record, columns)
            row = await connection.fetchrow(query, *args)
            if row is None:
                return {"success": False, "message": f"Record {record[PRIMARY_KEY]} not found"}
            return {"success": True, "data": dict(row)}

        response = await self._write_each(table, params.get("records", []), update)
        logger.info(f"Update on {table}: {_summary(response)}")
        return response

    async def delete_record(self, table: str, params: Params) -> Response:
        rejected = self._unknown_table(table)
        if rejected:
            return rejected

        query = f"DELETE FROM {_quote(table)} WHERE {_quote(PRIMARY_KEY)} = $1 RETURNING {_quote(PRIMARY_KEY)}"

        async def delete(connection, record_id: Any) -> Dict[str, Any]:
            row = await connection.fetchrow(query, int(record_id))
            if row is None:
                return {"success": False, "message": f"Record {record_id} not found"}
            return {"success": True, "data": {PRIMARY_KEY: row[PRIMARY_KEY]}}

        response = await self._write_each(table, params.get("RecordIds", []), delete)
        logger.info(f"Delete on {table}: {_summary(response)}")
        return response


def _summary(response: Response) -> str:
    results = response.get("results", [])
    succeeded = sum(1 for r in results if r.get("success"))
    failed = [r for r in results if not r.get("success")]
    summary = f"{succeeded} succeeded, {len(failed)} failed"
    if failed:
        summary += f" {json.dumps(failed, default=str)}"
    return summary


# NOTE: Factory function for easy initialization
async def create_record_client() -> PostgresRecordClient:
    """Create and connect a record client from environment configuration."""
    client = PostgresRecordClient(
        host=database.DB_HOST,
        port=database.DB_PORT,
        database=database.DB_NAME,
        username=database.DB_USER,
        password=database.DB_PASSWORD,
        schema=database.DB_SCHEMA
    )
    await client.connect()
    return client
