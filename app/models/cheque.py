import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, Enum, func
from app.core.config import get_settings
from app.core.database import Base


class ChequeStatus(enum.IntEnum):
    DRAFT = 0
    ISSUED = 1
    CLEARED = 2
    BOUNCED = 3
    VOIDED = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Cheque(Base):
    __tablename__ = "cheques"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(30), unique=True, nullable=False, index=True)
    payee_name = Column(String(120), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=lambda: get_settings().DEFAULT_CURRENCY)
    issue_date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=False)
    # Stored by name; the numeric values are part of the public contract via ChequeStatus
    status = Column(Enum(ChequeStatus, name="cheque_status"), nullable=False, default=ChequeStatus.DRAFT)
    notes = Column(String(500))
    created_at_utc = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
