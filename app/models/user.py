from sqlalchemy import Boolean, String, false, true
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import AuditedRecordMixin

class User(Base, AuditedRecordMixin):
    __tablename__ = "users"
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true(), nullable=False)
