from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, false, func, or_, select, true
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

import filters
import models


# --- Predicate / ordering translation ---
def _job_column(field: str):
    column = getattr(models.Job, field, None)
    if column is None:
        raise ValueError(f"Unknown job field: {field}")
    return column


def compile_predicate(predicate: filters.Predicate):
    """Translate a ``filters`` predicate tree into a SQLAlchemy clause on ``Job``."""
    if isinstance(predicate, filters.AllOf):
        return and_(true(), *(compile_predicate(c) for c in predicate.clauses))
    if isinstance(predicate, filters.AnyOf):
        return or_(false(), *(compile_predicate(c) for c in predicate.clauses))
    if isinstance(predicate, filters.TextMatch):
        return _job_column(predicate.field).icontains(predicate.value, autoescape=True)
    if isinstance(predicate, filters.BoolEquals):
        return _job_column(predicate.field) == predicate.value
    if isinstance(predicate, filters.Compare):
        column = _job_column(predicate.field)
        if predicate.op == "gte":
            return column >= predicate.value
        if predicate.op == "lte":
            return column <= predicate.value
        raise ValueError(f"Unsupported comparison: {predicate.op}")
    if isinstance(predicate, filters.IsNull):
        return _job_column(predicate.field).is_(None)
    if isinstance(predicate, filters.NotNull):
        return _job_column(predicate.field).is_not(None)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def compile_ordering(ordering: Sequence[filters.SortKey]) -> list:
    # Nulls sort as the smallest value; Job.id keeps pages stable.
    clauses = []
    for key in ordering:
        column = _job_column(key.field)
        clauses.append(column.desc().nulls_last() if key.descending else column.asc().nulls_first())
    clauses.append(models.Job.id.asc())
    return clauses


# --- Job queries ---
def find_jobs(
    db: Session,
    predicate: filters.Predicate,
    ordering: Sequence[filters.SortKey],
    offset: int,
    limit: int,
) -> Tuple[List[models.Job], int]:
    """Return one page of matching jobs plus the total number of matches."""
    criteria = compile_predicate(predicate)
    jobs = (
        db.query(models.Job)
        .filter(criteria)
        .order_by(*compile_ordering(ordering))
        .offset(offset)
        .limit(limit)
        .all()
    )
    total = db.query(func.count(models.Job.id)).filter(criteria).scalar()
    return jobs, total


def count_jobs(db: Session, predicate: Optional[filters.Predicate] = None) -> int:
    query = db.query(func.count(models.Job.id))
    if predicate is not None:
        query = query.filter(compile_predicate(predicate))
    return query.scalar()


def top_values(db: Session, field: str, limit: Optional[int] = None) -> List[Tuple[str, int]]:
    """Group jobs by a non-empty column value, most frequent first."""
    column = _job_column(field)
    count = func.count(models.Job.id).label("count")
    query = (
        db.query(column, count)
        .filter(column.is_not(None), column != "")
        .group_by(column)
        .order_by(count.desc(), column.asc())
    )
    if limit is not None:
        query = query.limit(limit)
    return [(value, total) for value, total in query.all()]


def get_job_by_job_id(db: Session, job_id: str):
    return db.query(models.Job).filter(models.Job.job_id == job_id).first()


# --- User CRUD ---
def get_user_by_id(db: Session, user_id: int):
    """Get a user by their primary key ID."""
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, email: str, hashed_password: str):
    db_user = models.User(email=email, hashed_password=hashed_password, verified=False)
    db.add(db_user)
    db.flush()  # Assign ID without committing
    db.refresh(db_user)
    return db_user


def mark_user_verified(db: Session, user_id: int):
    user = get_user_by_id(db, user_id)
    if not user:
        return None
    user.verified = True
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# --- Saved jobs ---
def _insert_for(db: Session):
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


def get_saved_job_ids(db: Session, user_id: int) -> List[str]:
    rows = db.execute(
        select(models.saved_jobs.c.job_id)
        .where(models.saved_jobs.c.user_id == user_id)
        .order_by(models.saved_jobs.c.id)
    )
    return [job_id for (job_id,) in rows]


def add_saved_job(db: Session, user_id: int, job_id: str) -> List[str]:
    """Bookmark a job; saving the same job twice keeps a single entry."""
    insert = _insert_for(db)
    stmt = (
        insert(models.saved_jobs)
        .values(user_id=user_id, job_id=job_id)
        .on_conflict_do_nothing(index_elements=["user_id", "job_id"])
    )
    db.execute(stmt)
    db.commit()
    return get_saved_job_ids(db, user_id)


def remove_saved_job(db: Session, user_id: int, job_id: str) -> List[str]:
    db.execute(
        delete(models.saved_jobs).where(
            models.saved_jobs.c.user_id == user_id,
            models.saved_jobs.c.job_id == job_id,
        )
    )
    db.commit()
    return get_saved_job_ids(db, user_id)
