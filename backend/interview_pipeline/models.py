from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from .services.lifecycle import InterviewOutcome

Base = declarative_base()


def new_calendar_token() -> str:
    # uuid4 draws from os.urandom
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=False)
    name = Column(String)
    calendar_token = Column(String, unique=True, index=True, default=new_calendar_token)
    created_at = Column(DateTime, default=datetime.utcnow)

    companies = relationship("Company", back_populates="user")


class Company(Base):
    __tablename__ = "companies"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_companies_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)

    user = relationship("User", back_populates="companies")


class Stage(Base):
    __tablename__ = "stages"

    id = Column(Integer, primary_key=True, index=True)
    stage = Column(String, unique=True, nullable=False)


class StageMethod(Base):
    __tablename__ = "stage_methods"

    id = Column(Integer, primary_key=True, index=True)
    method = Column(String, unique=True, nullable=False)


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    client_company = Column(String)
    job_title = Column(String, nullable=False)
    interviewer = Column(String)
    notes = Column(Text)
    metadata_json = Column("metadata", JSON)
    link = Column(String)
    date = Column(DateTime, index=True)
    deadline = Column(Date, index=True)
    stage_id = Column(Integer, ForeignKey("stages.id"), nullable=False)
    stage_method_id = Column(Integer, ForeignKey("stage_methods.id"))
    outcome = Column(
        Enum(InterviewOutcome, native_enum=False, length=32, validate_strings=True),
        nullable=False,
    )
    application_date = Column(DateTime, nullable=False, default=datetime.utcnow)

    company = relationship("Company")
    stage = relationship("Stage")
    stage_method = relationship("StageMethod")
