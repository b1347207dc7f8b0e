from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Jobs ---
class Job(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: str
    employer_name: Optional[str] = None
    employer_logo: Optional[str] = None
    employer_website: Optional[str] = None
    employer_company_type: Optional[str] = None
    job_title: Optional[str] = None
    job_employment_type: Optional[str] = None
    job_description: Optional[str] = None
    job_apply_link: Optional[str] = None
    job_is_remote: Optional[bool] = None
    job_city: Optional[str] = None
    job_state: Optional[str] = None
    job_country: Optional[str] = None
    job_latitude: Optional[float] = None
    job_longitude: Optional[float] = None
    job_location: Optional[str] = None
    job_min_salary: Optional[float] = None
    job_max_salary: Optional[float] = None
    job_salary_currency: Optional[str] = None
    job_salary_period: Optional[str] = None
    job_posted_at_datetime_utc: Optional[str] = None
    job_posted_human_readable: Optional[str] = None
    job_expiration_date: Optional[str] = None
    job_offer_expiration_datetime_utc: Optional[str] = None
    job_highlights: Optional[Dict[str, List[str]]] = None
    job_benefits: Optional[List[str]] = None
    job_required_experience: Optional[str] = None
    job_required_education: Optional[str] = None
    job_required_skills: Optional[List[str]] = None
    job_industry: Optional[str] = None
    job_category: Optional[str] = None
    job_job_title_snippet: Optional[str] = None
    job_publisher: Optional[str] = None
    job_source: Optional[str] = None
    job_job_api_source: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(BaseModel):
    current_page: int
    per_page: int
    total_jobs: int
    total_pages: int


class JobListResponse(BaseModel):
    jobs: List[Job]
    pagination: Pagination
    filters_applied: Dict[str, Any]


class JobCount(BaseModel):
    count: int


class LocationCount(BaseModel):
    city: str
    count: int


class CompanyCount(BaseModel):
    company: str
    count: int


class EmploymentTypeCount(BaseModel):
    type: str
    count: int


class JobPercentages(BaseModel):
    remote_percentage: int
    salary_percentage: int
    recent_percentage: int


class JobStats(BaseModel):
    total_jobs: int
    remote_jobs: int
    jobs_with_salary: int
    recent_jobs: int
    top_locations: List[LocationCount]
    top_companies: List[CompanyCount]
    employment_types: List[EmploymentTypeCount]
    percentages: JobPercentages


# --- Users & auth ---
class Credentials(BaseModel):
    # Optional so missing fields answer 400 with a readable message
    email: Optional[str] = None
    password: Optional[str] = None


class User(BaseModel):
    id: int
    email: str
    verified: bool
    saved_jobs: List[str] = Field(default_factory=list, serialization_alias="savedJobs")


class SignupResponse(BaseModel):
    message: str
    email: str
    needs_verification: bool = Field(True, serialization_alias="needsVerification")


class LoginResponse(BaseModel):
    message: str
    user: User
    access_token: str = Field(serialization_alias="accessToken")


class RefreshResponse(BaseModel):
    access_token: str = Field(serialization_alias="accessToken")
    user: User


class Message(BaseModel):
    message: str


# --- Saved jobs ---
class SaveJobRequest(BaseModel):
    job_id: Optional[str] = Field(None, alias="jobID")


class SavedJobIds(BaseModel):
    message: str
    saved_jobs: List[str] = Field(serialization_alias="savedJobs")


class SavedJobList(BaseModel):
    saved_jobs: List[Job] = Field(serialization_alias="savedJobs")
