"""create_chat_turns

Revision ID: 7d3e9b1c2a40
Revises:
Create Date: 2025-08-01

Conversation history store:
- chat_turns table (append-only user/model turns keyed by session id)
- turnrole enum
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '7d3e9b1c2a40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('chat_turns',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('session_id', sa.String(length=100), nullable=False),
        sa.Column('role', sa.Enum('USER', 'MODEL', name='turnrole'), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chat_turns_session_id'), 'chat_turns', ['session_id'], unique=False)
    op.create_index('ix_chat_turns_session_created', 'chat_turns', ['session_id', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_chat_turns_session_created', table_name='chat_turns')
    op.drop_index(op.f('ix_chat_turns_session_id'), table_name='chat_turns')
    op.drop_table('chat_turns')
    op.execute('DROP TYPE IF EXISTS turnrole')
