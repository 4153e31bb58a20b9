"""rfid reader logs

Revision ID: c4e8f1a2b3d6
Revises: b7c1d2e3f4a5
Create Date: 2026-10-18 12:00:00.000000

Adds rfid_logs: metadata for uploaded RFID reader log files.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c4e8f1a2b3d6'
down_revision = 'b7c1d2e3f4a5'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'rfid_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('original_filename', sa.String(length=255), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('format', sa.String(length=64), nullable=False),
        sa.Column('upload_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('filename'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_rfid_logs_upload_date', 'rfid_logs', ['upload_date'])


def downgrade():
    op.drop_index('ix_rfid_logs_upload_date', table_name='rfid_logs')
    op.drop_table('rfid_logs')
