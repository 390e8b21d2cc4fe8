from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import validates

from app.database import Base
from app.models.article import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)  # never serialized
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="user")  # "user" | "admin"
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    @validates("email")
    def normalize_email(self, key, value):
        return value.strip().lower()
