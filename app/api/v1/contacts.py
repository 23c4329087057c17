from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import CurrentUser, get_current_user, get_query_params
from app.db.session import get_db
from app.schemas.contact import ContactCreate, ContactRead, ContactUpdate
from app.schemas.universal import PaginatedResult, QueryParams
from app.services.crud_service import CrudService
from app.services.resource_policy import IncludeRelation, ResourcePolicy

BASE_PATH = f"{settings.API_PREFIX}/contacts"

CONTACTS_POLICY = ResourcePolicy.build(
    "contacts",
    "Contact",
    select=[
        "contacts.id",
        "contacts.first_name",
        "contacts.last_name",
        "contacts.email",
        "contacts.phone",
        "contacts.mobile",
        "contacts.company",
        "contacts.address_line1",
        "contacts.address_line2",
        "contacts.city",
        "contacts.state",
        "contacts.postal_code",
        "contacts.country",
        "contacts.billing_address_line1",
        "contacts.billing_address_line2",
        "contacts.billing_city",
        "contacts.billing_state",
        "contacts.billing_postal_code",
        "contacts.billing_country",
        "contacts.delivery_address_line1",
        "contacts.delivery_address_line2",
        "contacts.delivery_city",
        "contacts.delivery_state",
        "contacts.delivery_postal_code",
        "contacts.delivery_country",
        "contacts.is_customer",
        "contacts.is_employee",
        "contacts.is_supplier",
        "contacts.is_active",
        "contacts.created_at",
        "contacts.created_by",
        "contacts.updated_at",
        "contacts.updated_by",
    ],
    searchable=["first_name", "last_name", "email", "phone", "mobile", "company", "city", "state", "country"],
    filterable=["is_customer", "is_employee", "is_supplier", "is_active", "city", "state", "country"],
    sortable=["first_name", "last_name", "email", "company", "created_at", "updated_at"],
    includes={
        "created_user": IncludeRelation(
            "LEFT JOIN users created_user ON contacts.created_by = created_user.id",
            ("created_user.id AS created_user_id", "created_user.first_name AS created_user_name"),
        ),
        "updated_user": IncludeRelation(
            "LEFT JOIN users updated_user ON contacts.updated_by = updated_user.id",
            ("updated_user.id AS updated_user_id", "updated_user.first_name AS updated_user_name"),
        ),
    },
    writable=set(ContactUpdate.model_fields) | set(ContactCreate.model_fields),
)

contacts_service = CrudService(CONTACTS_POLICY, ContactRead, base_path=BASE_PATH)

router = APIRouter()


@router.get("", response_model=PaginatedResult[ContactRead])
def list_contacts(
    params: QueryParams = Depends(get_query_params),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return contacts_service.list(db, params)


@router.get("/customers", response_model=PaginatedResult[ContactRead])
def list_customers(
    params: QueryParams = Depends(get_query_params),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return contacts_service.list(db, params.with_pinned_filter({"is_customer": True}), base_path=f"{BASE_PATH}/customers")


@router.get("/suppliers", response_model=PaginatedResult[ContactRead])
def list_suppliers(
    params: QueryParams = Depends(get_query_params),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return contacts_service.list(db, params.with_pinned_filter({"is_supplier": True}), base_path=f"{BASE_PATH}/suppliers")


@router.get("/{contact_id}", response_model=ContactRead)
def get_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return contacts_service.get_by_id(db, contact_id)


@router.post("", response_model=ContactRead, status_code=201)
def create_contact(
    payload: ContactCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    data = payload.model_dump()
    data["is_active"] = True
    return contacts_service.create(db, user.user_id, data)


@router.put("/{contact_id}", response_model=ContactRead)
def update_contact(
    contact_id: UUID,
    payload: ContactUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return contacts_service.update(db, user.user_id, contact_id, payload)


@router.delete("/{contact_id}", status_code=204)
def delete_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    contacts_service.delete(db, user.user_id, contact_id)
    return Response(status_code=204)
