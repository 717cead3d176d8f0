"""SQLAlchemy ORM models for the application record store"""

from sqlalchemy import BigInteger, Column, DateTime, LargeBinary, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class LoanApplicationRecord(Base):
    """One serialized loan application per application number"""

    __tablename__ = "loan_application_record"

    application_number = Column(Text, primary_key=True)
    payload = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class IdentifierCounter(Base):
    """Last bidding/account number handed out by the sequential strategy"""

    __tablename__ = "identifier_counter"

    name = Column(Text, primary_key=True)
    last_value = Column(BigInteger, nullable=False)
