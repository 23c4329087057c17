from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import CurrentUser, get_current_user, get_query_params
from app.core.errors import BusinessRule
from app.db.session import get_db
from app.schemas.account_subclassification import (
    AccountSubclassificationCreate,
    AccountSubclassificationRead,
    AccountSubclassificationUpdate,
)
from app.schemas.universal import DeleteResult, PaginatedResult, QueryParams
from app.services.code_generator import determine_code
from app.services.crud_service import CrudService
from app.services.resource_policy import ResourcePolicy

ACCOUNT_SUBCLASSIFICATIONS_POLICY = ResourcePolicy.build(
    "account_subclassifications",
    "Account Subclassification",
    select=[
        "id",
        "code",
        "name",
        "alias_name",
        "cash_flow_type",
        "ratio_type",
        "is_variable_cost",
        "account_classification_id",
        "parent_id",
        "is_parent",
        "is_active",
        "created_at",
        "created_by",
        "updated_at",
        "updated_by",
    ],
    searchable=["code", "name", "alias_name"],
    filterable=["is_active", "is_parent", "is_variable_cost", "cash_flow_type", "account_classification_id", "parent_id"],
    sortable=["code", "name", "created_at", "updated_at"],
    writable=set(AccountSubclassificationCreate.model_fields) | set(AccountSubclassificationUpdate.model_fields),
    soft_delete_column="is_active",
)

account_subclassifications_service = CrudService(
    ACCOUNT_SUBCLASSIFICATIONS_POLICY,
    AccountSubclassificationRead,
    base_path=f"{settings.API_PREFIX}/account-subclassifications",
)

router = APIRouter()


def _ensure_parent_rule(is_parent: bool | None, parent_id: UUID | None) -> None:
    if is_parent and parent_id is not None:
        raise BusinessRule("A parent account subclassification cannot have a parent")


@router.get("", response_model=PaginatedResult[AccountSubclassificationRead])
def list_account_subclassifications(
    params: QueryParams = Depends(get_query_params),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return account_subclassifications_service.list(db, params)


@router.get("/{row_id}", response_model=AccountSubclassificationRead)
def get_account_subclassification(
    row_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return account_subclassifications_service.get_by_id(db, row_id)


@router.post("", response_model=AccountSubclassificationRead, status_code=201)
def create_account_subclassification(
    payload: AccountSubclassificationCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    _ensure_parent_rule(payload.is_parent, payload.parent_id)
    data = payload.model_dump()
    data["code"] = determine_code(db, ACCOUNT_SUBCLASSIFICATIONS_POLICY.table, payload.name, payload.code)
    return account_subclassifications_service.create(db, user.user_id, data)


@router.put("/{row_id}", response_model=AccountSubclassificationRead)
def update_account_subclassification(
    row_id: UUID,
    payload: AccountSubclassificationUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    _ensure_parent_rule(payload.is_parent, payload.parent_id)
    return account_subclassifications_service.update(db, user.user_id, row_id, payload)


@router.delete("/{row_id}", response_model=DeleteResult)
def delete_account_subclassification(
    row_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    account_subclassifications_service.delete(db, user.user_id, row_id)
    return DeleteResult(id=str(row_id), message="Account subclassification deleted successfully")
