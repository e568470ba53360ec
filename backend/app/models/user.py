from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base

ROLE_EMPLOYER = "employer"
ROLE_EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_EMPLOYEE)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="users")
    client = relationship("Client", back_populates="employees")
    timesheets = relationship(
        "Timesheet",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="Timesheet.user_id",
    )

    @property
    def is_employer(self) -> bool:
        return self.role == ROLE_EMPLOYER
