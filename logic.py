import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, List, Mapping, Optional

import structlog
from sqlalchemy.orm import Session

import crud
import filters
import models
from observability import metric_scope

# Set up logging
logger = structlog.get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
RECENT_WINDOW = timedelta(hours=168)
TOP_N = 5


@dataclass
class JobSearchResult:
    jobs: List[models.Job]
    total: int
    page: int
    limit: int
    filters_applied: dict = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            "current_page": self.page,
            "per_page": self.limit,
            "total_jobs": self.total,
            "total_pages": self.total_pages,
        }


# ---------------------------------------------------------------------------
@metric_scope
async def search_jobs(
    db: Session,
    params: Mapping[str, Any],
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    now: Optional[datetime] = None,
    metrics=None,
) -> JobSearchResult:
    """
    Run a job search: build the filter, resolve the ordering and fetch one page.

    ``page`` and ``limit`` are used as given; bounding them is the API layer's job.

    Raises
    ------
    filters.InvalidFilterError  • if a numeric parameter cannot be parsed
    """
    predicate = filters.build_job_filter(params, now=now)
    ordering = filters.resolve_sort(params.get("sort_by"))
    offset = (page - 1) * limit

    jobs, total = crud.find_jobs(db, predicate, ordering, offset=offset, limit=limit)

    metrics.set_namespace("JobBoard")
    metrics.put_metric("job_searches", 1, "Count")
    metrics.put_metric("job_search_results", total, "Count")
    metrics.set_property("sort_by", params.get("sort_by") or filters.DEFAULT_SORT)
    logger.info(
        "Job search executed",
        clauses=len(predicate.clauses),
        page=page,
        limit=limit,
        total=total,
    )
    return JobSearchResult(
        jobs=jobs,
        total=total,
        page=page,
        limit=limit,
        filters_applied=filters.applied_filters(params),
    )


def _percentage(part: int, total: int) -> int:
    # Round half up, 0 for an empty collection.
    if total <= 0:
        return 0
    return int(math.floor(part / total * 100 + 0.5))


def compute_job_stats(db: Session, now: Optional[datetime] = None) -> dict:
    """Descriptive counts and top-N groupings over the whole job collection."""
    now = now or datetime.now(timezone.utc)

    total_jobs = crud.count_jobs(db)
    remote_jobs = crud.count_jobs(db, filters.BoolEquals("job_is_remote", True))
    jobs_with_salary = crud.count_jobs(
        db,
        filters.AnyOf((filters.NotNull("job_min_salary"), filters.NotNull("job_max_salary"))),
    )
    recent_jobs = crud.count_jobs(
        db,
        filters.Compare(filters.POSTED_AT_FIELD, "gte", filters.iso_utc(now - RECENT_WINDOW)),
    )

    top_locations = crud.top_values(db, "job_city", limit=TOP_N)
    top_companies = crud.top_values(db, "employer_name", limit=TOP_N)
    employment_types = crud.top_values(db, "job_employment_type")

    logger.info("Job statistics computed", total_jobs=total_jobs)
    return {
        "total_jobs": total_jobs,
        "remote_jobs": remote_jobs,
        "jobs_with_salary": jobs_with_salary,
        "recent_jobs": recent_jobs,
        "top_locations": [{"city": city, "count": count} for city, count in top_locations],
        "top_companies": [{"company": name, "count": count} for name, count in top_companies],
        "employment_types": [{"type": kind, "count": count} for kind, count in employment_types],
        "percentages": {
            "remote_percentage": _percentage(remote_jobs, total_jobs),
            "salary_percentage": _percentage(jobs_with_salary, total_jobs),
            "recent_percentage": _percentage(recent_jobs, total_jobs),
        },
    }
