from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import CurrentUser, get_current_user, get_query_params
from app.db.session import get_db
from app.schemas.universal import PaginatedResult, QueryParams
from app.schemas.user import UserCreate, UserRead, UserUpdate
from app.services.crud_service import CrudService
from app.services.resource_policy import ResourcePolicy

USERS_POLICY = ResourcePolicy.build(
    "users",
    "User",
    select=[
        "id",
        "username",
        "email",
        "first_name",
        "last_name",
        "is_active",
        "created_at",
        "created_by",
        "updated_at",
        "updated_by",
    ],
    searchable=["username", "email", "first_name", "last_name"],
    filterable=["is_active", "username", "email"],
    sortable=["username", "email", "first_name", "last_name", "created_at", "updated_at"],
    writable=set(UserCreate.model_fields) | set(UserUpdate.model_fields),
)

users_service = CrudService(USERS_POLICY, UserRead, base_path=f"{settings.API_PREFIX}/users")

router = APIRouter()


def normalize_email(email: str) -> str:
    return email.strip().lower()


@router.get("", response_model=PaginatedResult[UserRead])
def list_users(
    params: QueryParams = Depends(get_query_params),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return users_service.list(db, params)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: UUID, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return users_service.get_by_id(db, user_id)


@router.post("", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    data = payload.model_dump()
    data["email"] = normalize_email(data["email"])
    return users_service.create(db, user.user_id, data)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if payload.email is not None:
        payload = payload.model_copy(update={"email": normalize_email(payload.email)})
    return users_service.update(db, user.user_id, user_id, payload)


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: UUID, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    users_service.delete(db, user.user_id, user_id)
    return Response(status_code=204)
