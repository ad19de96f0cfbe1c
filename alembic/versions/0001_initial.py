"""create accounts, companies, jobs and applications

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('logo', sa.String(512), nullable=False),
        sa.Column('street', sa.String(256), nullable=False),
        sa.Column('city', sa.String(128), nullable=False),
        sa.Column('state', sa.String(128), nullable=False),
        sa.Column('country', sa.String(128), nullable=False),
        sa.Column('industry', sa.String(128), nullable=False),
        sa.Column('website', sa.String(2048), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='SET NULL'), nullable=True),
        sa.Column('resume', sa.String(1024), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index('ix_accounts_role', 'accounts', ['role'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('posted_by_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('requirements', sa.JSON(), nullable=False),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('city', sa.String(128), nullable=False),
        sa.Column('state', sa.String(128), nullable=True),
        sa.Column('country', sa.String(128), nullable=True),
        sa.Column('remote', sa.Boolean(), nullable=False),
        sa.Column('salary_min', sa.Float(), nullable=False),
        sa.Column('salary_max', sa.Float(), nullable=False),
        sa.Column('salary_currency', sa.String(8), nullable=False),
        sa.Column('job_type', sa.String(16), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('application_deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('application_email', sa.String(320), nullable=True),
        sa.Column('views_count', sa.Integer(), nullable=False),
        sa.Column('application_click_count', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_jobs_company_id', 'jobs', ['company_id'])
    op.create_index('ix_jobs_job_type', 'jobs', ['job_type'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('ix_jobs_application_deadline', 'jobs', ['application_deadline'])
    op.create_index('ix_jobs_created_at', 'jobs', ['created_at'])
    op.create_index('ix_jobs_salary_range', 'jobs', ['salary_min', 'salary_max'])

    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('job_id', sa.Integer(), sa.ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('applicant_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('resume', sa.String(1024), nullable=False),
        sa.Column('cover_letter', sa.Text(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('employer_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('job_id', 'applicant_id', name='uq_applications_job_applicant'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_applicant_id', 'applications', ['applicant_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('ix_applications_created_at', 'applications', ['created_at'])


def downgrade() -> None:
    op.drop_table('applications')
    op.drop_table('jobs')
    op.drop_table('accounts')
    op.drop_table('companies')
