from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from tournament_hub.core.roles import ROLE_USER
from tournament_hub.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    name = Column(String(100), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_USER)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
