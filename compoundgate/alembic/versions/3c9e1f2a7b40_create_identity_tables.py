"""create_identity_tables

Revision ID: 3c9e1f2a7b40
Revises:
Create Date: 2026-10-19 09:12:31.402118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '3c9e1f2a7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'compounds',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=120), nullable=False),
        sa.Column('address', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('admin_id', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=False),
        sa.Column('admin_email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_compounds_admin_id'), 'compounds', ['admin_id'], unique=False)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('compound_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.Enum('owner', 'employee', 'manager', name='usertype'), nullable=False),
        sa.Column('first_name', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('last_name', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('phone', sqlmodel.sql.sqltypes.AutoString(length=32), nullable=True),
        sa.Column('phone_key', sqlmodel.sql.sqltypes.AutoString(length=32), nullable=True),
        sa.Column('property_unit', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('has_password', sa.Boolean(), nullable=False),
        sa.Column('password_hash', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('is_first_time_login', sa.Boolean(), nullable=False),
        sa.Column('external_auth_id', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=True),
        sa.Column('payment_status', sa.Enum('paid', 'pending', 'overdue', name='paymentstatus'), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['compound_id'], ['compounds.id']),
        sa.PrimaryKeyConstraint('id'),
        # Closes the duplicate-phone race left open by read-then-write checks
        sa.UniqueConstraint('phone_key'),
    )
    op.create_index(op.f('ix_users_compound_id'), 'users', ['compound_id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
    op.create_index(op.f('ix_users_phone'), 'users', ['phone'], unique=False)
    op.create_index(op.f('ix_users_external_auth_id'), 'users', ['external_auth_id'], unique=False)

    op.create_table(
        'device_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('device_fingerprint', sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column('user_agent', sqlmodel.sql.sqltypes.AutoString(length=512), nullable=False),
        sa.Column('ip_address', sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_device_sessions_user_id'), 'device_sessions', ['user_id'], unique=False)
    op.create_index(op.f('ix_device_sessions_device_fingerprint'), 'device_sessions', ['device_fingerprint'], unique=False)

    op.create_table(
        'owner_invites',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('token', sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column('compound_id', sa.Uuid(), nullable=False),
        sa.Column('phone', sqlmodel.sql.sqltypes.AutoString(length=32), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('first_name', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column('last_name', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column('property_unit', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column('status', sa.Enum('pending', 'accepted', 'expired', 'revoked', name='invitestatus'), nullable=False),
        sa.Column('created_by', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=False),
        sa.Column('accepted_by_uid', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=True),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['compound_id'], ['compounds.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_owner_invites_token'), 'owner_invites', ['token'], unique=True)
    op.create_index(op.f('ix_owner_invites_compound_id'), 'owner_invites', ['compound_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_owner_invites_compound_id'), table_name='owner_invites')
    op.drop_index(op.f('ix_owner_invites_token'), table_name='owner_invites')
    op.drop_table('owner_invites')
    op.drop_index(op.f('ix_device_sessions_device_fingerprint'), table_name='device_sessions')
    op.drop_index(op.f('ix_device_sessions_user_id'), table_name='device_sessions')
    op.drop_table('device_sessions')
    op.drop_index(op.f('ix_users_external_auth_id'), table_name='users')
    op.drop_index(op.f('ix_users_phone'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_compound_id'), table_name='users')
    op.drop_table('users')
    op.drop_index(op.f('ix_compounds_admin_id'), table_name='compounds')
    op.drop_table('compounds')
    # Enum types linger on PostgreSQL after the tables are gone
    for enum_name in ('invitestatus', 'paymentstatus', 'usertype'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
