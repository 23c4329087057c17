"""Human-readable record codes such as ``AIN-00001``.

The prefix is the upper-cased initial of every word in the source text and
the number continues the highest existing code with the same prefix.
"""
from __future__ import annotations

import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import BadRequest, DatabaseError
from app.services.universal_query import LIKE_ESCAPE, ParamBinder, Statement, escape_like

_LOG = logging.getLogger("app.codes")

CODE_NUMBER_WIDTH = 5
CODE_MAX_LENGTH = 20
# Tables whose `code` column may be generated.
CODE_TABLES = frozenset({"account_classifications", "account_subclassifications"})

_CODE_NUMBER_RE = re.compile(r"-(\d+)$")


def generate_prefix(name: str) -> str:
    return "".join(word[0] for word in name.split()).upper()


def extract_number_from_code(code: str) -> int | None:
    match = _CODE_NUMBER_RE.search(code or "")
    return int(match.group(1)) if match else None


def format_code(prefix: str, number: int) -> str:
    return f"{prefix}-{number:0{CODE_NUMBER_WIDTH}d}"


def _ensure_code_table(table: str) -> None:
    if table not in CODE_TABLES:
        raise BadRequest(f"Code generation is not supported for module '{table}'")


def next_sequence_number(db: Session, table: str, prefix: str) -> int:
    _ensure_code_table(table)
    binder = ParamBinder()
    stmt = Statement(
        sql=(
            f"SELECT code FROM {table} WHERE code LIKE {binder.bind(escape_like(prefix) + '-%')}"
            f" ESCAPE '{LIKE_ESCAPE}' ORDER BY code DESC LIMIT 1"
        ),
        bound=binder.bound,
    )
    try:
        last_code = db.execute(stmt.clause(), stmt.params).scalar()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DatabaseError(str(exc)) from exc
    if last_code is None:
        return 1
    number = extract_number_from_code(last_code)
    return number + 1 if number is not None else 1


def generate_code(db: Session, table: str, name: str) -> str:
    prefix = generate_prefix(name)
    if not prefix:
        raise BadRequest("Cannot generate a code from an empty name")
    code = format_code(prefix, next_sequence_number(db, table, prefix))
    if len(code) > CODE_MAX_LENGTH:
        raise BadRequest(f"Generated code '{code}' is longer than {CODE_MAX_LENGTH} characters")
    _LOG.info("Generated code %s for %s", code, table)
    return code


def determine_code(db: Session, table: str, text: str, code: str | None = None) -> str:
    """Use the caller's code when given, otherwise generate one from ``text``."""
    if code and code.strip():
        return code.strip()
    return generate_code(db, table, text)
