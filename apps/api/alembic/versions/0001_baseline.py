"""Baseline migration - users, authorities, agents, invitations and cases

Revision ID: 0001_baseline
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create every table of the mediation platform."""

    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')  # For gen_random_uuid()

    # ==========================================================================
    # Users and roles
    # ==========================================================================
    op.execute('''
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(255) UNIQUE NOT NULL,
            firstname VARCHAR(100) NOT NULL,
            lastname VARCHAR(100) NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            profile_picture VARCHAR(500),
            token_version INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')

    op.execute('''
        CREATE TABLE admins (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            can_everything BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')

    op.execute('''
        CREATE TABLE live_chat_settings (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            session_token VARCHAR(64) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')

    # ==========================================================================
    # Authorities and agents
    # ==========================================================================
    op.execute('''
        CREATE TABLE authorities (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            slug VARCHAR(100) UNIQUE NOT NULL,
            type VARCHAR(20) NOT NULL DEFAULT 'CITY',
            logo_attachment_id UUID,
            main_agent_id UUID,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            deleted_at TIMESTAMPTZ
        )
    ''')
    op.execute('CREATE INDEX ix_authorities_deleted_at ON authorities(deleted_at)')

    op.execute('''
        CREATE TABLE agents (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            authority_id UUID NOT NULL REFERENCES authorities(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_agents_user_authority UNIQUE (user_id, authority_id)
        )
    ''')
    op.execute('CREATE INDEX idx_agents_authority_id ON agents(authority_id)')

    # Circular reference: added once agents exists
    op.execute('''
        ALTER TABLE authorities
        ADD CONSTRAINT fk_authorities_main_agent_id
        FOREIGN KEY (main_agent_id) REFERENCES agents(id) ON DELETE SET NULL
    ''')

    # ==========================================================================
    # Invitations
    # ==========================================================================
    op.execute('''
        CREATE TABLE invitations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            issuer_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            invitee_email VARCHAR(255) NOT NULL,
            invitee_firstname VARCHAR(100),
            invitee_lastname VARCHAR(100),
            token VARCHAR(64) UNIQUE NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'PENDING',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            deleted_at TIMESTAMPTZ
        )
    ''')
    op.execute('CREATE INDEX idx_invitations_invitee_email ON invitations(invitee_email)')
    op.execute('CREATE INDEX idx_invitations_issuer_id ON invitations(issuer_id)')

    # pending_key is "<authority_id>:<email>" while the invitation is pending, NULL after
    op.execute('''
        CREATE TABLE agent_invitations (
            invitation_id UUID PRIMARY KEY REFERENCES invitations(id) ON DELETE CASCADE,
            authority_id UUID NOT NULL REFERENCES authorities(id) ON DELETE CASCADE,
            grant_main_agent BOOLEAN NOT NULL DEFAULT false,
            pending_key VARCHAR(320) UNIQUE
        )
    ''')
    op.execute('CREATE INDEX idx_agent_invitations_authority_id ON agent_invitations(authority_id)')

    op.execute('''
        CREATE TABLE admin_invitations (
            invitation_id UUID PRIMARY KEY REFERENCES invitations(id) ON DELETE CASCADE
        )
    ''')

    # ==========================================================================
    # Cases
    # ==========================================================================
    op.execute('''
        CREATE TABLE cases (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            authority_id UUID NOT NULL REFERENCES authorities(id) ON DELETE CASCADE,
            agent_id UUID REFERENCES agents(id) ON DELETE SET NULL,
            citizen_email VARCHAR(255) NOT NULL,
            citizen_firstname VARCHAR(100) NOT NULL,
            citizen_lastname VARCHAR(100) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            closed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_cases_authority_id ON cases(authority_id)')
    op.execute('CREATE INDEX idx_cases_agent_id ON cases(agent_id)')


def downgrade() -> None:
    op.execute('DROP TABLE IF EXISTS cases')
    op.execute('DROP TABLE IF EXISTS admin_invitations')
    op.execute('DROP TABLE IF EXISTS agent_invitations')
    op.execute('DROP TABLE IF EXISTS invitations')
    op.execute('ALTER TABLE authorities DROP CONSTRAINT IF EXISTS fk_authorities_main_agent_id')
    op.execute('DROP TABLE IF EXISTS agents')
    op.execute('DROP TABLE IF EXISTS authorities')
    op.execute('DROP TABLE IF EXISTS live_chat_settings')
    op.execute('DROP TABLE IF EXISTS admins')
    op.execute('DROP TABLE IF EXISTS users')
