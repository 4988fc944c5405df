"""Create leads, conversion_rates and scoring_runs tables

Revision ID: 3f9a1c7d2e40
Revises:
Create Date: 2024-09-02 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c7d2e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('client_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), server_default=''),
        sa.Column('email', sa.Text(), server_default=''),
        sa.Column('phone', sa.Text(), server_default=''),
        sa.Column('service', sa.Text(), server_default=''),
        sa.Column('ad_set_name', sa.Text(), server_default=''),
        sa.Column('ad_name', sa.Text(), server_default=''),
        sa.Column('zip', sa.Text(), server_default=''),
        sa.Column('lead_date', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False, server_default='new'),
        sa.Column('unqualified_reason', sa.Text(), server_default=''),
        sa.Column('lead_score', sa.Integer(), nullable=True),
        sa.Column('conversion_rates', sa.JSON(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_leads_client_id_is_deleted', 'leads', ['client_id', 'is_deleted'])

    op.create_table(
        'conversion_rates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('client_id', sa.Text(), nullable=False),
        sa.Column('key_field', sa.Text(), nullable=False),
        sa.Column('key_name', sa.Text(), nullable=False),
        sa.Column('conversion_rate', sa.Float(), nullable=False, server_default='0.0'),
        sa.Column('past_total_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('past_total_est', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('client_id', 'key_field', 'key_name', name='uq_conversion_rate_key'),
    )
    op.create_index('ix_conversion_rates_client_id', 'conversion_rates', ['client_id'])

    op.create_table(
        'scoring_runs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('execution_id', sa.Text(), nullable=False),
        sa.Column('job_name', sa.Text(), nullable=False),
        sa.Column('trigger', sa.Text(), nullable=False, server_default='manual'),
        sa.Column('mode', sa.Text(), nullable=False, server_default='full'),
        sa.Column('status', sa.Text(), nullable=False, server_default='started'),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('processed_count', sa.Integer(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_scoring_runs_execution_id', 'scoring_runs', ['execution_id'])


def downgrade() -> None:
    op.drop_index('ix_scoring_runs_execution_id', table_name='scoring_runs')
    op.drop_table('scoring_runs')
    op.drop_index('ix_conversion_rates_client_id', table_name='conversion_rates')
    op.drop_table('conversion_rates')
    op.drop_index('ix_leads_client_id_is_deleted', table_name='leads')
    op.drop_table('leads')
