from sqlalchemy.orm import relationship
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
    JSON,
)
from database import Base


# Bookmarks: one row per (user, job); insertion order is the saved order.
saved_jobs = Table(
    "saved_jobs",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("job_id", String, ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False),
    Column("saved_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("user_id", "job_id", name="uq_saved_jobs_user_job"),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    saved_jobs = relationship(
        "Job", secondary=saved_jobs, order_by=saved_jobs.c.id, viewonly=True
    )


class Job(Base):
    """A listing written by the ingestion job; read-only for the API."""

    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_location", "job_city", "job_state", "job_country"),
        Index("ix_jobs_posted_at", "job_posted_at_datetime_utc"),
        Index("ix_jobs_employment_type", "job_employment_type"),
        Index("ix_jobs_is_remote", "job_is_remote"),
        Index("ix_jobs_salary", "job_min_salary", "job_max_salary"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(String, unique=True, nullable=False)

    # Employer
    employer_name = Column(String)
    employer_logo = Column(String)
    employer_website = Column(String)
    employer_company_type = Column(String)

    # Core listing
    job_title = Column(String)
    job_employment_type = Column(String)
    job_description = Column(Text)
    job_apply_link = Column(String)
    job_is_remote = Column(Boolean)
    job_city = Column(String)
    job_state = Column(String)
    job_country = Column(String)
    job_latitude = Column(Float)
    job_longitude = Column(Float)
    job_location = Column(String)

    # Compensation, every field optional
    job_min_salary = Column(Float)
    job_max_salary = Column(Float)
    job_salary_currency = Column(String)
    job_salary_period = Column(String)

    # Dates are kept as ISO-8601 strings, as delivered by the feed
    job_posted_at_datetime_utc = Column(String)
    job_posted_human_readable = Column(String)
    job_expiration_date = Column(String)
    job_offer_expiration_datetime_utc = Column(String)

    job_highlights = Column(JSON)  # {"Qualifications": [...], "Responsibilities": [...], "Benefits": [...]}
    job_benefits = Column(JSON)
    job_required_experience = Column(String)
    job_required_education = Column(String)
    job_required_skills = Column(JSON)
    job_industry = Column(String)
    job_category = Column(String)
    job_job_title_snippet = Column(String)
    job_publisher = Column(String)
    job_source = Column(String)
    job_job_api_source = Column(String)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
