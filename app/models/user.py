from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from app.core.database import Base

ROLE_ADMIN = "Admin"
ROLE_USER = "User"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)  # Admin | User
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def roles(self) -> frozenset[str]:
        return frozenset({self.role}) if self.role else frozenset()
