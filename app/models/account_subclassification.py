import uuid

from sqlalchemy import Boolean, ForeignKey, String, false, true
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base
from app.models.common import AuditedRecordMixin


class AccountSubclassification(Base, AuditedRecordMixin):
    __tablename__ = "account_subclassifications"

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    alias_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cash_flow_type: Mapped[str] = mapped_column(String(20), nullable=False)  # operating|investing|financing
    ratio_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_variable_cost: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    account_classification_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("account_classifications.id"), nullable=False, index=True
    )
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("account_subclassifications.id"), nullable=True
    )
    is_parent: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true(), nullable=False, index=True)
