from sqlalchemy import Column, String, Boolean

from .base import Base, TimestampMixin, generate_uuid
from ..core.permissions import Role


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    # Stored as the raw role key; validated against the permission table on every request
    role = Column(String(20), nullable=False, default=Role.TECHNICIAN.value)
    specialty = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True)
