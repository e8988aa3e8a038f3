"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum types are shared between tables, so they are created once up front
record_state = postgresql.ENUM('ACTIVE', 'DELETED', name='record_state', create_type=False)
userrole = postgresql.ENUM('ADMIN', 'AGENT', name='userrole', create_type=False)
conversationstatus = postgresql.ENUM('ACTIVE', 'ARCHIVED', name='conversationstatus', create_type=False)
messagedirection = postgresql.ENUM('INBOUND', 'OUTBOUND', name='messagedirection', create_type=False)
messagestatus = postgresql.ENUM(
    'SENDING', 'SENT', 'DELIVERED', 'READ', 'FAILED', name='messagestatus', create_type=False
)
messagetype = postgresql.ENUM('TEXT', 'IMAGE', 'AUDIO', name='messagetype', create_type=False)

ENUMS = (record_state, userrole, conversationstatus, messagedirection, messagestatus, messagetype)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _state() -> sa.Column:
    return sa.Column('state', record_state, nullable=False, server_default='ACTIVE')


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table('companies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        *_timestamps(),
        _state(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', userrole, nullable=True),
        *_timestamps(),
        _state(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_company_created', 'users', ['company_id', 'created_at', 'id'], unique=False)

    op.create_table('api_keys',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('key_hash', sa.String(length=255), nullable=False),
        sa.Column('key_prefix', sa.String(length=20), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _state(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_api_keys_key_prefix', 'api_keys', ['key_prefix'], unique=False)

    op.create_table('whatsapp_accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone_number_id', sa.String(length=100), nullable=False),
        sa.Column('business_account_id', sa.String(length=100), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('app_secret', sa.String(length=255), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_timestamps(),
        _state(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_whatsapp_accounts_company_phone', 'whatsapp_accounts', ['company_id', 'phone_number_id'], unique=True)
    op.create_index('ix_whatsapp_accounts_company_name', 'whatsapp_accounts', ['company_id', 'name'], unique=True)
    op.create_index('ix_whatsapp_accounts_phone_number_id', 'whatsapp_accounts', ['phone_number_id'], unique=False)

    op.create_table('contacts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('tags', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        _state(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contacts_company_phone', 'contacts', ['company_id', 'phone'], unique=True)
    op.create_index('ix_contacts_company_created', 'contacts', ['company_id', 'created_at', 'id'], unique=False)

    op.create_table('conversations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('status', conversationstatus, nullable=True),
        sa.Column('unread_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_message_id', sa.Integer(), nullable=True),
        sa.Column('last_message_preview', sa.String(length=255), nullable=True),
        sa.Column('last_message_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('assigned_to_user_id', sa.Integer(), nullable=True),
        *_timestamps(),
        _state(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['assigned_to_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_conversations_company_contact', 'conversations', ['company_id', 'contact_id'], unique=True)
    op.create_index('ix_conversations_company_last_message', 'conversations', ['company_id', 'last_message_time', 'id'], unique=False)
    op.create_index('ix_conversations_assigned_to', 'conversations', ['assigned_to_user_id', 'company_id'], unique=False)

    op.create_table('messages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('conversation_id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('whatsapp_account_id', sa.Integer(), nullable=True),
        sa.Column('direction', messagedirection, nullable=False),
        sa.Column('status', messagestatus, nullable=True),
        sa.Column('content_type', messagetype, nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('media_url', sa.String(length=1000), nullable=True),
        sa.Column('media_id', sa.String(length=100), nullable=True),
        sa.Column('provider_message_id', sa.String(length=255), nullable=True),
        sa.Column('provider_status', sa.String(length=50), nullable=True),
        sa.Column('error_code', sa.String(length=50), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        _state(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['whatsapp_account_id'], ['whatsapp_accounts.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_messages_conversation_created', 'messages', ['conversation_id', 'created_at', 'id'], unique=False)
    op.create_index('ix_messages_company_status', 'messages', ['company_id', 'status'], unique=False)
    op.create_index('ix_messages_provider_message_id', 'messages', ['provider_message_id'], unique=False)

    op.create_table('conversation_notes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('conversation_id', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_pinned', sa.Boolean(), nullable=True),
        *_timestamps(),
        _state(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_conversation_notes_conversation_created', 'conversation_notes', ['conversation_id', 'created_at', 'id'], unique=False)
    op.create_index('ix_conversation_notes_company', 'conversation_notes', ['company_id'], unique=False)

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('old_values', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('new_values', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('changed_by', sa.Integer(), nullable=False),
        sa.Column('change_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['changed_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_logs_company_entity', 'audit_logs', ['company_id', 'entity_type', 'entity_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_audit_logs_company_entity', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_conversation_notes_company', table_name='conversation_notes')
    op.drop_index('ix_conversation_notes_conversation_created', table_name='conversation_notes')
    op.drop_table('conversation_notes')
    op.drop_index('ix_messages_provider_message_id', table_name='messages')
    op.drop_index('ix_messages_company_status', table_name='messages')
    op.drop_index('ix_messages_conversation_created', table_name='messages')
    op.drop_table('messages')
    op.drop_index('ix_conversations_assigned_to', table_name='conversations')
    op.drop_index('ix_conversations_company_last_message', table_name='conversations')
    op.drop_index('ix_conversations_company_contact', table_name='conversations')
    op.drop_table('conversations')
    op.drop_index('ix_contacts_company_created', table_name='contacts')
    op.drop_index('ix_contacts_company_phone', table_name='contacts')
    op.drop_table('contacts')
    op.drop_index('ix_whatsapp_accounts_phone_number_id', table_name='whatsapp_accounts')
    op.drop_index('ix_whatsapp_accounts_company_name', table_name='whatsapp_accounts')
    op.drop_index('ix_whatsapp_accounts_company_phone', table_name='whatsapp_accounts')
    op.drop_table('whatsapp_accounts')
    op.drop_index('ix_api_keys_key_prefix', table_name='api_keys')
    op.drop_table('api_keys')
    op.drop_index('ix_users_company_created', table_name='users')
    op.drop_table('users')
    op.drop_table('companies')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
