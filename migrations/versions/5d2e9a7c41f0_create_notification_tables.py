"""create_notification_tables

Revision ID: 5d2e9a7c41f0
Revises:
Create Date: 2026-10-16 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5d2e9a7c41f0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create inbox, delivery audit, preference and push target tables."""

    # --- notifications (inbox entries, one per recipient) ---
    op.create_table('notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=True),
        sa.Column('recipient_user_id', sa.String(length=64), nullable=False),
        sa.Column('actor_user_id', sa.String(length=64), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('deep_link', sa.Text(), nullable=True),
        sa.Column('data', postgresql.JSONB(), nullable=True),
        sa.Column('batch_key', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('notifications_inbox_idx', 'notifications',
                    ['tenant_id', 'recipient_user_id', 'created_at'])
    op.create_index('notifications_unread_idx', 'notifications',
                    ['recipient_user_id', 'read_at'])
    op.create_index('notifications_batch_key_idx', 'notifications', ['batch_key'])

    # --- notification_deliveries (append-only audit log) ---
    op.create_table('notification_deliveries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('notification_id', sa.String(length=36), nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('provider_message_id', sa.String(length=255), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['notification_id'], ['notifications.id'],
                                ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notification_deliveries_notification_id'),
                    'notification_deliveries', ['notification_id'])

    # --- notification_preferences (NULL tenant = global row) ---
    op.create_table('notification_preferences',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=True),
        sa.Column('in_app_enabled', sa.Boolean(), nullable=False,
                  server_default='true'),
        sa.Column('push_enabled', sa.Boolean(), nullable=False,
                  server_default='false'),
        sa.Column('email_enabled', sa.Boolean(), nullable=False,
                  server_default='true'),
        sa.Column('marketing_email_enabled', sa.Boolean(), nullable=False,
                  server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=True,
                  server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(), nullable=True,
                  server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'tenant_id'),
    )
    op.create_index(op.f('ix_notification_preferences_user_id'),
                    'notification_preferences', ['user_id'])
    op.create_index(op.f('ix_notification_preferences_tenant_id'),
                    'notification_preferences', ['tenant_id'])

    # --- notification_targets (push identity per user) ---
    op.create_table('notification_targets',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('push_subscriber_id', sa.String(length=255), nullable=True),
        sa.Column('expo_push_token', sa.String(length=255), nullable=True),
        sa.Column('last_active_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True,
                  server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(), nullable=True,
                  server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index(op.f('ix_notification_targets_push_subscriber_id'),
                    'notification_targets', ['push_subscriber_id'])


def downgrade() -> None:
    """Drop notification tables."""
    op.drop_table('notification_targets')
    op.drop_table('notification_preferences')
    op.drop_table('notification_deliveries')
    op.drop_table('notifications')
