"""
User model. Credentials and the role claim live on the same row; the role is
read fresh on every authenticated request so role changes apply immediately.
"""

from sqlalchemy import Column, Integer, String, Boolean, CheckConstraint
from sqlalchemy.orm import relationship

from app.core.permissions import Role
from app.db.base import Base, TimestampMixin

ROLE_VALUES = ", ".join(f"'{r.value}'" for r in Role)


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(32), nullable=True)
    role = Column(String(32), nullable=False, default=Role.ORDINARY.value)
    is_active = Column(Boolean, default=True, nullable=False)

    registrations = relationship("EventRegistration", back_populates="user", lazy="raise")

    __table_args__ = (
        CheckConstraint(f"role IN ({ROLE_VALUES})", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
