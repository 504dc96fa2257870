"""Contract drafts

Revision ID: 3c1f9a6d2b7e
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '3c1f9a6d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLModel stores enum members by name
duration_unit_enum = sa.Enum('DAYS', 'MONTHS', 'YEARS', name='durationunit')
payment_mode_enum = sa.Enum('PREPAID', 'EMI', 'DEFINED', 'MIXED', name='paymentmode')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('contractdraft',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('currency', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('duration_value', sa.Integer(), nullable=False),
        sa.Column('duration_unit', duration_unit_enum, nullable=False),
        sa.Column('payment_mode', payment_mode_enum, nullable=False),
        sa.Column('emi_months', sa.Integer(), nullable=True),
        sa.Column('blocks', sa.JSON(), nullable=True),
        sa.Column('coverage_types', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contractdraft_payment_mode'), 'contractdraft', ['payment_mode'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_contractdraft_payment_mode'), table_name='contractdraft')
    op.drop_table('contractdraft')
    duration_unit_enum.drop(op.get_bind(), checkfirst=True)
    payment_mode_enum.drop(op.get_bind(), checkfirst=True)
