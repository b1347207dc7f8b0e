"""initial schema: jobs, users, saved_jobs

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.String(), nullable=False),
        sa.Column("employer_name", sa.String(), nullable=True),
        sa.Column("employer_logo", sa.String(), nullable=True),
        sa.Column("employer_website", sa.String(), nullable=True),
        sa.Column("employer_company_type", sa.String(), nullable=True),
        sa.Column("job_title", sa.String(), nullable=True),
        sa.Column("job_employment_type", sa.String(), nullable=True),
        sa.Column("job_description", sa.Text(), nullable=True),
        sa.Column("job_apply_link", sa.String(), nullable=True),
        sa.Column("job_is_remote", sa.Boolean(), nullable=True),
        sa.Column("job_city", sa.String(), nullable=True),
        sa.Column("job_state", sa.String(), nullable=True),
        sa.Column("job_country", sa.String(), nullable=True),
        sa.Column("job_latitude", sa.Float(), nullable=True),
        sa.Column("job_longitude", sa.Float(), nullable=True),
        sa.Column("job_location", sa.String(), nullable=True),
        sa.Column("job_min_salary", sa.Float(), nullable=True),
        sa.Column("job_max_salary", sa.Float(), nullable=True),
        sa.Column("job_salary_currency", sa.String(), nullable=True),
        sa.Column("job_salary_period", sa.String(), nullable=True),
        sa.Column("job_posted_at_datetime_utc", sa.String(), nullable=True),
        sa.Column("job_posted_human_readable", sa.String(), nullable=True),
        sa.Column("job_expiration_date", sa.String(), nullable=True),
        sa.Column("job_offer_expiration_datetime_utc", sa.String(), nullable=True),
        sa.Column("job_highlights", sa.JSON(), nullable=True),
        sa.Column("job_benefits", sa.JSON(), nullable=True),
        sa.Column("job_required_experience", sa.String(), nullable=True),
        sa.Column("job_required_education", sa.String(), nullable=True),
        sa.Column("job_required_skills", sa.JSON(), nullable=True),
        sa.Column("job_industry", sa.String(), nullable=True),
        sa.Column("job_category", sa.String(), nullable=True),
        sa.Column("job_job_title_snippet", sa.String(), nullable=True),
        sa.Column("job_publisher", sa.String(), nullable=True),
        sa.Column("job_source", sa.String(), nullable=True),
        sa.Column("job_job_api_source", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_id"),
    )
    op.create_index("ix_jobs_id", "jobs", ["id"], unique=False)
    op.create_index("ix_jobs_location", "jobs", ["job_city", "job_state", "job_country"], unique=False)
    op.create_index("ix_jobs_posted_at", "jobs", ["job_posted_at_datetime_utc"], unique=False)
    op.create_index("ix_jobs_employment_type", "jobs", ["job_employment_type"], unique=False)
    op.create_index("ix_jobs_is_remote", "jobs", ["job_is_remote"], unique=False)
    op.create_index("ix_jobs_salary", "jobs", ["job_min_salary", "job_max_salary"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "saved_jobs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.String(), nullable=False),
        sa.Column("saved_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.job_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "job_id", name="uq_saved_jobs_user_job"),
    )
    op.create_index("ix_saved_jobs_user_id", "saved_jobs", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_saved_jobs_user_id", table_name="saved_jobs")
    op.drop_table("saved_jobs")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_jobs_salary", table_name="jobs")
    op.drop_index("ix_jobs_is_remote", table_name="jobs")
    op.drop_index("ix_jobs_employment_type", table_name="jobs")
    op.drop_index("ix_jobs_posted_at", table_name="jobs")
    op.drop_index("ix_jobs_location", table_name="jobs")
    op.drop_index("ix_jobs_id", table_name="jobs")
    op.drop_table("jobs")
