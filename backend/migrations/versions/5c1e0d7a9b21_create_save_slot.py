"""create save_slot table

Revision ID: 5c1e0d7a9b21
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1e0d7a9b21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'save_slot' in set(insp.get_table_names()):
        return
    op.create_table(
        'save_slot',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('slot', sa.String(length=64), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('save_slot') as batch_op:
        batch_op.create_index(batch_op.f('ix_save_slot_slot'), ['slot'], unique=True)


def downgrade():
    with op.batch_alter_table('save_slot') as batch_op:
        batch_op.drop_index(batch_op.f('ix_save_slot_slot'))
    op.drop_table('save_slot')
