from __future__ import annotations

import logging
import uuid
from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import BadRequest, DatabaseError, NotFound, translate_integrity_error
from app.models.common import utcnow
from app.schemas.universal import PaginatedResult, QueryParams
from app.services.pagination import paginate
from app.services.resource_policy import SYSTEM_COLUMNS, ResourcePolicy, is_identifier
from app.services.row_mapper import GenericRow, decode_row, decoder_for, map_rows
from app.services.universal_query import ParamBinder, Statement, build_get_by_id, build_list_queries

T = TypeVar("T")

_LOG = logging.getLogger("app.crud")


def flatten_payload(payload: Any, *, exclude_unset: bool = False, exclude_none: bool = False) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=exclude_unset, exclude_none=exclude_none)
    if isinstance(payload, Mapping):
        return {key: value for key, value in payload.items() if not (exclude_none and value is None)}
    raise BadRequest("Request body must be a JSON object")


def _dialect_name(db: Session) -> str:
    return db.get_bind().dialect.name


class CrudService(Generic[T]):
    """List/get/create/update/delete for one resource, driven by its policy."""

    def __init__(self, policy: ResourcePolicy, result_type: type[T], *, base_path: str):
        self.policy = policy
        self.result_type = result_type
        self.base_path = base_path
        self._decoder = decoder_for(result_type)

    @property
    def entity(self) -> str:
        return self.policy.entity

    def _decode(self, row: Any) -> T:
        return decode_row(GenericRow.from_result_row(row), self._decoder, type_name=self.result_type.__name__)

    def writable_data(self, data: Mapping[str, Any]) -> dict[str, Any]:
        cleaned = {key: value for key, value in data.items() if key not in SYSTEM_COLUMNS}
        allowed = self.policy.writable_columns
        unknown = sorted(
            key for key in cleaned if not is_identifier(key) or (allowed is not None and key not in allowed)
        )
        if unknown:
            raise BadRequest("Unknown fields: " + ", ".join(unknown))
        return cleaned

    def _run_write(self, db: Session, stmt: Statement, payload: Mapping[str, Any]):
        try:
            result = db.execute(stmt.clause(), stmt.params)
            affected = result.rowcount
            row = result.first() if result.returns_rows else None
            db.commit()
        except DBAPIError as exc:
            db.rollback()
            raise translate_integrity_error(exc, self.entity, payload) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise DatabaseError(str(exc)) from exc
        return row, affected

    def list(self, db: Session, params: QueryParams, *, base_path: str | None = None) -> PaginatedResult[T]:
        queries = build_list_queries(self.policy, params, _dialect_name(db))
        try:
            total = int(db.execute(queries.count.clause(), queries.count.params).scalar_one())
            rows = db.execute(queries.select.clause(), queries.select.params).all()
        except SQLAlchemyError as exc:
            db.rollback()
            raise DatabaseError(str(exc)) from exc
        results = map_rows(rows, self.result_type)
        return paginate(
            results,
            count=total,
            page=queries.page,
            page_size=queries.page_size,
            base_path=base_path or self.base_path,
        )

    def get_by_id(self, db: Session, row_id: Any) -> T:
        stmt = build_get_by_id(self.policy, row_id)
        try:
            row = db.execute(stmt.clause(), stmt.params).first()
        except SQLAlchemyError as exc:
            db.rollback()
            raise DatabaseError(str(exc)) from exc
        if row is None:
            raise NotFound(self.entity, row_id)
        return self._decode(row)

    def create(self, db: Session, identity: str, payload: Any) -> T:
        data = self.writable_data(flatten_payload(payload))
        now = utcnow()
        binder = ParamBinder()
        columns = ["id", "created_by", "updated_by", "created_at", "updated_at", *data.keys()]
        placeholders = [
            binder.bind(uuid.uuid4()),
            binder.bind(identity),
            binder.bind(identity),
            binder.bind(now),
            binder.bind(now),
            *(binder.bind(value) for value in data.values()),
        ]
        stmt = Statement(
            sql=(
                f"INSERT INTO {self.policy.table} ({', '.join(columns)})"
                f" VALUES ({', '.join(placeholders)}) RETURNING *"
            ),
            bound=binder.bound,
        )
        row, _ = self._run_write(db, stmt, data)
        _LOG.info("Created %s by %s", self.entity, identity)
        return self._decode(row)

    def update(self, db: Session, identity: str, row_id: Any, payload: Any) -> T:
        # null leaves the stored value unchanged
        data = self.writable_data(flatten_payload(payload, exclude_unset=True, exclude_none=True))
        if not data:
            raise BadRequest("No fields to update")
        binder = ParamBinder()
        assignments = [
            f"updated_by = {binder.bind(identity)}",
            f"updated_at = {binder.bind(utcnow())}",
            *(f"{key} = {binder.bind(value)}" for key, value in data.items()),
        ]
        where = f"{self.policy.primary_key} = {binder.bind(row_id)}"
        if self.policy.soft_delete_column:
            where += f" AND {self.policy.soft_delete_column} = {binder.bind(True)}"
        stmt = Statement(
            sql=f"UPDATE {self.policy.table} SET {', '.join(assignments)} WHERE {where} RETURNING *",
            bound=binder.bound,
        )
        row, _ = self._run_write(db, stmt, data)
        if row is None:
            raise NotFound(self.entity, row_id)
        _LOG.info("Updated %s %s by %s", self.entity, row_id, identity)
        return self._decode(row)

    def delete(self, db: Session, identity: str, row_id: Any) -> None:
        binder = ParamBinder()
        flag = self.policy.soft_delete_column
        if flag:
            sql = (
                f"UPDATE {self.policy.table} SET {flag} = {binder.bind(False)},"
                f" updated_by = {binder.bind(identity)}, updated_at = {binder.bind(utcnow())}"
                f" WHERE {self.policy.primary_key} = {binder.bind(row_id)} AND {flag} = {binder.bind(True)}"
            )
        else:
            sql = f"DELETE FROM {self.policy.table} WHERE {self.policy.primary_key} = {binder.bind(row_id)}"
        _, affected = self._run_write(db, Statement(sql=sql, bound=binder.bound), {})
        if not affected:
            raise NotFound(self.entity, row_id)
        _LOG.info("Deleted %s %s by %s", self.entity, row_id, identity)
