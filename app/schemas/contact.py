from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class _ContactFields(BaseModel):
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=30)
    mobile: Optional[str] = Field(default=None, max_length=30)
    company: Optional[str] = Field(default=None, max_length=200)
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    billing_address_line1: Optional[str] = None
    billing_address_line2: Optional[str] = None
    billing_city: Optional[str] = None
    billing_state: Optional[str] = None
    billing_postal_code: Optional[str] = None
    billing_country: Optional[str] = None
    delivery_address_line1: Optional[str] = None
    delivery_address_line2: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_postal_code: Optional[str] = None
    delivery_country: Optional[str] = None


class ContactCreate(_ContactFields):
    first_name: str = Field(min_length=1, max_length=100)
    country: str = "United States"
    is_customer: bool = False
    is_employee: bool = False
    is_supplier: bool = False


class ContactUpdate(_ContactFields):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    country: Optional[str] = None
    is_customer: Optional[bool] = None
    is_employee: Optional[bool] = None
    is_supplier: Optional[bool] = None
    is_active: Optional[bool] = None


class ContactRead(_ContactFields):
    id: UUID
    first_name: str
    country: Optional[str] = None
    is_customer: bool
    is_employee: bool
    is_supplier: bool
    is_active: bool
    created_at: datetime
    created_by: Optional[UUID] = None
    updated_at: datetime
    updated_by: Optional[UUID] = None

    # Present only when the matching include relation is requested.
    created_user_id: Optional[UUID] = None
    created_user_name: Optional[str] = None
    updated_user_id: Optional[UUID] = None
    updated_user_name: Optional[str] = None
