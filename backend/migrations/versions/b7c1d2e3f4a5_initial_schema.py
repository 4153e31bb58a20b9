"""initial schema

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete Stockroom schema:
- users / session_tokens: operator accounts and bearer sessions
- cameras: camera registry referenced by items and videos
- rfid_tags: RFID tags with the `used` flag
- items: stocked items bound to a tag, with check-in/check-out timestamps
- videos: uploaded footage metadata and processing status
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users / session_tokens
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # cameras
    # ============================================================================
    op.create_table(
        'cameras',
        sa.Column('camera_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('camera_id'),
    )

    # ============================================================================
    # rfid_tags: used=true iff one in-stock item references the tag
    # ============================================================================
    op.create_table(
        'rfid_tags',
        sa.Column('rfid', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('rfid'),
    )
    op.create_index('ix_rfid_tags_used', 'rfid_tags', ['used'])

    # ============================================================================
    # items: id is autoincrement (no MAX(id)+1)
    # ============================================================================
    op.create_table(
        'items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('perishable', sa.Boolean(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('dry', sa.Boolean(), nullable=False),
        sa.Column('fragile', sa.Boolean(), nullable=False),
        sa.Column('threshold', sa.Float(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('timestamp_in', sa.DateTime(timezone=True), nullable=False),
        sa.Column('timestamp_out', sa.DateTime(timezone=True), nullable=True),
        sa.Column('camera_id', sa.Integer(), nullable=False),
        sa.Column('rfid', sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(['camera_id'], ['cameras.camera_id']),
        sa.ForeignKeyConstraint(['rfid'], ['rfid_tags.rfid']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_items_category', 'items', ['category'])
    op.create_index('ix_items_perishable_expiry', 'items', ['perishable', 'expiry_date'])
    op.create_index('ix_items_timestamp_out', 'items', ['timestamp_out'])
    op.create_index('ix_items_camera_id', 'items', ['camera_id'])
    op.create_index('ix_items_rfid', 'items', ['rfid'])

    # ============================================================================
    # videos
    # ============================================================================
    op.create_table(
        'videos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('original_filename', sa.String(length=255), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('format', sa.String(length=64), nullable=False),
        sa.Column('camera_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('results', sa.JSON(), nullable=True),
        sa.Column('upload_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('processed_date', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['camera_id'], ['cameras.camera_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('filename'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_videos_camera_id', 'videos', ['camera_id'])
    op.create_index('ix_videos_status', 'videos', ['status'])


def downgrade():
    op.drop_table('videos')
    op.drop_table('items')
    op.drop_table('rfid_tags')
    op.drop_table('cameras')
    op.drop_table('session_tokens')
    op.drop_table('users')
