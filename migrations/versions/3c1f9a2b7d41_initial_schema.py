"""Initial schema: tags, fireside families, firesides, snippets, deepenings, outlines

Revision ID: 3c1f9a2b7d41
Revises:
Create Date: 2026-10-19 10:12:07.418233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1f9a2b7d41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# JSON для SQLite, JSONB для PostgreSQL (как в models/base.py)
JSONDocument = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    """Upgrade schema."""
    # Create tags table
    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('name_key', sa.String(length=100), nullable=False),
        sa.Column('reference_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('reference_count >= 0', name='ck_tags_reference_count'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tags_name_key', 'tags', ['name_key'], unique=True)

    # Create fireside_families table
    op.create_table(
        'fireside_families',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_uid', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_fireside_families_owner_uid', 'fireside_families', ['owner_uid'])

    # Create firesides table
    op.create_table(
        'firesides',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fireside_family_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('held_on', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['fireside_family_id'], ['fireside_families.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_firesides_fireside_family_id', 'firesides', ['fireside_family_id'])

    # Create snippets table
    op.create_table(
        'snippets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fireside_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('natural_order', sa.Float(), nullable=False),
        sa.Column('visibility', sa.String(length=7), nullable=False, server_default='PUBLIC'),
        sa.Column('tags', JSONDocument, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['fireside_id'], ['firesides.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_snippets_fireside_id', 'snippets', ['fireside_id'])

    # Create deepenings table
    op.create_table(
        'deepenings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('snippet_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('tags', JSONDocument, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['snippet_id'], ['snippets.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_deepenings_snippet_id', 'deepenings', ['snippet_id'])

    # Create outlines table
    op.create_table(
        'outlines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('items', JSONDocument, nullable=False),
        sa.Column('markdown', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_outlines_user_id', 'outlines', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_outlines_user_id', table_name='outlines')
    op.drop_table('outlines')
    op.drop_index('ix_deepenings_snippet_id', table_name='deepenings')
    op.drop_table('deepenings')
    op.drop_index('ix_snippets_fireside_id', table_name='snippets')
    op.drop_table('snippets')
    op.drop_index('ix_firesides_fireside_family_id', table_name='firesides')
    op.drop_table('firesides')
    op.drop_index('ix_fireside_families_owner_uid', table_name='fireside_families')
    op.drop_table('fireside_families')
    op.drop_index('ix_tags_name_key', table_name='tags')
    op.drop_table('tags')
