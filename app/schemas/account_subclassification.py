from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

CASH_FLOW_TYPES = {"operating", "investing", "financing"}


def _validate_cash_flow_type(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    normalized = str(value).strip().lower()
    if normalized not in CASH_FLOW_TYPES:
        raise ValueError("cash_flow_type must be one of: operating, investing, financing")
    return normalized


class AccountSubclassificationCreate(BaseModel):
    # Generated from `name` when omitted.
    code: Optional[str] = Field(default=None, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    alias_name: Optional[str] = Field(default=None, max_length=255)
    cash_flow_type: str
    ratio_type: Optional[str] = Field(default=None, max_length=50)
    is_variable_cost: bool = False
    account_classification_id: UUID
    parent_id: Optional[UUID] = None
    is_parent: bool = False
    is_active: bool = True

    @field_validator("cash_flow_type")
    @classmethod
    def validate_cash_flow_type(cls, value: str) -> str:
        return _validate_cash_flow_type(value)


class AccountSubclassificationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    alias_name: Optional[str] = Field(default=None, max_length=255)
    cash_flow_type: Optional[str] = None
    ratio_type: Optional[str] = Field(default=None, max_length=50)
    is_variable_cost: Optional[bool] = None
    parent_id: Optional[UUID] = None
    is_parent: Optional[bool] = None

    @field_validator("cash_flow_type")
    @classmethod
    def validate_cash_flow_type(cls, value: Optional[str]) -> Optional[str]:
        return _validate_cash_flow_type(value)


class AccountSubclassificationRead(BaseModel):
    id: UUID
    code: str
    name: str
    alias_name: Optional[str] = None
    cash_flow_type: str
    ratio_type: Optional[str] = None
    is_variable_cost: bool
    account_classification_id: UUID
    parent_id: Optional[UUID] = None
    is_parent: bool
    is_active: bool
    created_at: datetime
    created_by: Optional[UUID] = None
    updated_at: datetime
    updated_by: Optional[UUID] = None
