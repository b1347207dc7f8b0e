"""Search-parameter translation for the job listing endpoint.

Everything in this module is pure: a bag of raw query parameters goes in, a
backend-neutral predicate tree (and an ordering) comes out. ``crud`` owns the
translation of that tree into SQL, so the rules below can be tested without a
database.

Predicate tree node types:
    TextMatch   case-insensitive substring match on a string column
    BoolEquals  exact match on a boolean column
    Compare     ``>=`` / ``<=`` against a number or ISO-8601 string
    IsNull      column has no value
    NotNull     column has a value
    AllOf       logical AND of child predicates (empty = match everything)
    AnyOf       logical OR of child predicates
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Tuple, Union


class InvalidFilterError(ValueError):
    """A search parameter could not be interpreted (e.g. non-numeric salary)."""


@dataclass(frozen=True)
class TextMatch:
    field: str
    value: str


@dataclass(frozen=True)
class BoolEquals:
    field: str
    value: bool


@dataclass(frozen=True)
class Compare:
    field: str
    op: str  # "gte" | "lte"
    value: Union[int, float, str]


@dataclass(frozen=True)
class IsNull:
    field: str


@dataclass(frozen=True)
class NotNull:
    field: str


@dataclass(frozen=True)
class AllOf:
    clauses: Tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class AnyOf:
    clauses: Tuple["Predicate", ...] = ()


Predicate = Union[TextMatch, BoolEquals, Compare, IsNull, NotNull, AllOf, AnyOf]


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool


KEYWORD_FIELDS = ("job_title", "job_description", "employer_name", "job_category")
LOCATION_FIELDS = ("job_city", "job_state", "job_country", "job_location")
POSTED_AT_FIELD = "job_posted_at_datetime_utc"
_INT64_LIMIT = 2 ** 63

EMPLOYMENT_TYPE_SYNONYMS = {
    "full-time": "FULLTIME",
    "part-time": "PARTTIME",
    "contract": "CONTRACTOR",
    "contractor": "CONTRACTOR",
    "temporary": "TEMPORARY",
    "internship": "INTERN",
    "freelance": "FREELANCE",
    "consultant": "CONSULTANT",
}

# Lookback windows for the recency filter
RECENCY_WINDOWS = {
    "1d": timedelta(hours=24),
    "today": timedelta(hours=24),
    "3d": timedelta(hours=72),
    "3-days": timedelta(hours=72),
    "7d": timedelta(hours=168),
    "week": timedelta(hours=168),
    "this-week": timedelta(hours=168),
    "14d": timedelta(hours=336),
    "30d": timedelta(hours=720),
    "month": timedelta(hours=720),
    "this-month": timedelta(hours=720),
}

DEFAULT_SORT = "relevance"

_BY_POSTED_AT = (SortKey(POSTED_AT_FIELD, descending=True),)

SORT_ORDERS = {
    "date": _BY_POSTED_AT,
    "salary_high": (
        SortKey("job_max_salary", descending=True),
        SortKey("job_min_salary", descending=True),
    ),
    "salary_low": (
        SortKey("job_min_salary", descending=False),
        SortKey("job_max_salary", descending=False),
    ),
    "company": (SortKey("employer_name", descending=False),),
    # No scoring model: relevance is recency.
    "relevance": _BY_POSTED_AT,
}


def iso_utc(moment: datetime) -> str:
    """Format a datetime the way the feed stores timestamps (``...T10:00:00.000Z``)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _raw(params: Mapping[str, Any], key: str) -> str:
    value = params.get(key)
    if value is None:
        return ""
    return str(value)


def _first_present(params: Mapping[str, Any], *keys: str) -> str:
    """Return the first non-empty raw value among ``keys``."""
    for key in keys:
        value = _raw(params, key)
        if value:
            return value
    return ""


def _parse_amount(name: str, raw: str) -> Union[int, float]:
    try:
        value = int(raw)
    except ValueError:
        try:
            value = int(float(raw))
        except (ValueError, OverflowError):
            raise InvalidFilterError(f"{name} must be a number, got {raw!r}")
    if -_INT64_LIMIT <= value < _INT64_LIMIT:
        return value
    # Drivers only bind 64-bit integers; the salary columns are REAL anyway.
    try:
        return float(value)
    except OverflowError:
        raise InvalidFilterError(f"{name} is out of range, got {raw!r}")


def _any_field(fields: Tuple[str, ...], value: str) -> AnyOf:
    return AnyOf(tuple(TextMatch(field, value) for field in fields))


def employment_type_value(raw: str) -> str:
    """Map a human employment-type label onto the feed's vocabulary."""
    value = raw.strip()
    return EMPLOYMENT_TYPE_SYNONYMS.get(value.lower(), value.upper())


def build_job_filter(params: Mapping[str, Any], now: Optional[datetime] = None) -> AllOf:
    """Build the predicate tree for a job search.

    Each recognised parameter contributes one independent clause to the top
    level AND; absent or blank parameters contribute nothing. Keyword and
    location terms share a single OR group, so a location widens a keyword
    search instead of narrowing it.

    Raises
    ------
    InvalidFilterError  • if a salary bound is not a number
    """
    now = now or datetime.now(timezone.utc)
    clauses = []

    # --- keyword + location (one OR group) ---
    text_group = []
    keyword = _raw(params, "query").strip()
    if keyword:
        text_group.extend(TextMatch(field, keyword) for field in KEYWORD_FIELDS)

    location = _raw(params, "location")
    if location.strip():
        for term in (t.strip() for t in location.split(",")):
            # Blank terms are dropped instead of matching every listing.
            if term:
                text_group.extend(TextMatch(field, term) for field in LOCATION_FIELDS)
    if text_group:
        clauses.append(AnyOf(tuple(text_group)))

    # --- employment type ---
    employment_type = _first_present(params, "employment_type", "type").strip()
    if employment_type:
        clauses.append(TextMatch("job_employment_type", employment_type_value(employment_type)))

    # --- remote mode ---
    remote = _raw(params, "remote").strip().lower()
    if remote == "remote":
        clauses.append(BoolEquals("job_is_remote", True))
    elif remote == "onsite":
        clauses.append(BoolEquals("job_is_remote", False))
    elif remote == "hybrid":
        clauses.append(_any_field(("job_title", "job_description"), "hybrid"))

    # --- salary range ---
    min_salary = _raw(params, "min_salary").strip()
    if min_salary:
        floor = _parse_amount("min_salary", min_salary)
        clauses.append(
            AnyOf(
                (
                    Compare("job_max_salary", "gte", floor),
                    Compare("job_min_salary", "gte", floor),
                )
            )
        )
    max_salary = _raw(params, "max_salary").strip()
    if max_salary:
        ceiling = _parse_amount("max_salary", max_salary)
        # Listings without a recorded salary always pass the ceiling.
        clauses.append(
            AnyOf(
                (
                    Compare("job_min_salary", "lte", ceiling),
                    Compare("job_max_salary", "lte", ceiling),
                    IsNull("job_min_salary"),
                    IsNull("job_max_salary"),
                )
            )
        )

    # --- recency ---
    recency = _first_present(params, "date_posted", "deadline").strip().lower()
    window = RECENCY_WINDOWS.get(recency)
    if window is not None:
        clauses.append(Compare(POSTED_AT_FIELD, "gte", iso_utc(now - window)))

    # --- experience ---
    experience = _raw(params, "experience").strip()
    if experience:
        clauses.append(_any_field(("job_title", "job_required_experience"), experience))

    # --- field / industry ---
    field = _raw(params, "field").strip()
    if field:
        clauses.append(_any_field(("job_industry", "job_category"), field))

    return AllOf(tuple(clauses))


def resolve_sort(sort_by: Optional[str] = DEFAULT_SORT) -> Tuple[SortKey, ...]:
    """Map a ``sort_by`` key to an ordering; unknown keys fall back to relevance."""
    return SORT_ORDERS.get(sort_by or DEFAULT_SORT, SORT_ORDERS[DEFAULT_SORT])


def applied_filters(params: Mapping[str, Any]) -> dict:
    """Echo which filters the caller supplied (raw presence, not effect)."""
    min_salary = _raw(params, "min_salary")
    max_salary = _raw(params, "max_salary")
    return {
        "query": _raw(params, "query") or None,
        "location": _raw(params, "location") or None,
        "employment_type": _first_present(params, "employment_type", "type") or None,
        "remote": _raw(params, "remote") or None,
        "salary_range": (
            {"min": min_salary or None, "max": max_salary or None}
            if min_salary or max_salary
            else None
        ),
        "date_posted": _first_present(params, "date_posted", "deadline") or None,
        "experience": _raw(params, "experience") or None,
        "field": _raw(params, "field") or None,
        "sort_by": _raw(params, "sort_by") or DEFAULT_SORT,
    }
