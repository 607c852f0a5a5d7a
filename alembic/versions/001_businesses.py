"""Business directory listings

Revision ID: 001_businesses
Revises: 
Create Date: 2026-03-02

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_businesses'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'businesses',
        sa.Column('id', sa.String(length=64), nullable=False, comment='Opaque document id'),
        sa.Column('name', sa.String(length=255), nullable=False, comment='Business display name'),
        sa.Column('brief', sa.String(length=512), server_default='', nullable=False, comment='Short tagline'),
        sa.Column('description', sa.Text(), server_default='', nullable=False, comment='Long description'),
        sa.Column('profile_photo', sa.String(length=1024), nullable=True,
                  comment='Public URL of the profile photo'),
        sa.Column('categories', postgresql.JSONB(astext_type=sa.Text()), server_default='[]',
                  nullable=False, comment='Array of category tags'),
        sa.Column('addresses', postgresql.JSONB(astext_type=sa.Text()), server_default='[]',
                  nullable=False,
                  comment='Array of address documents (lines, city, link, phones, emails, availabilities)'),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'),
                  nullable=False, comment='Creation timestamp'),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'),
                  nullable=False, comment='Last modification timestamp'),
        sa.Column('user_id', sa.String(length=255), nullable=True, comment='Auth uid of the last editor'),
        sa.Column('created_by', sa.String(length=255), nullable=True, comment='Username that created the listing'),
        sa.Column('updated_by', sa.String(length=255), nullable=True,
                  comment='Username that last updated the listing'),
        sa.PrimaryKeyConstraint('id'),
        comment='Business directory listings'
    )

    op.create_index('idx_businesses_name', 'businesses', ['name'])
    op.create_index('idx_businesses_created_at', 'businesses', ['created_at'])
    # Category lookups use JSONB containment
    op.create_index('idx_businesses_categories', 'businesses', ['categories'], postgresql_using='gin')


def downgrade() -> None:
    op.drop_index('idx_businesses_categories', table_name='businesses')
    op.drop_index('idx_businesses_created_at', table_name='businesses')
    op.drop_index('idx_businesses_name', table_name='businesses')
    op.drop_table('businesses')
