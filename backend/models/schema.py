"""
SQLAlchemy models for the business directory.

This module defines the database schema using SQLAlchemy ORM,
matching the schema defined in Alembic migrations.
"""

from sqlalchemy import Column, String, Text, TIMESTAMP, Index, JSON, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), 'postgresql')


class BusinessRecord(Base):
    """Represents a business listing document."""

    __tablename__ = 'businesses'
    __table_args__ = (
        Index('idx_businesses_name', 'name'),
        Index('idx_businesses_created_at', 'created_at'),
        {'comment': 'Business directory listings'}
    )

    id = Column(
        String(64),
        primary_key=True,
        nullable=False,
        comment='Opaque document id'
    )
    name = Column(
        String(255),
        nullable=False,
        comment='Business display name'
    )
    brief = Column(
        String(512),
        nullable=False,
        server_default='',
        comment='Short tagline'
    )
    description = Column(
        Text,
        nullable=False,
        server_default='',
        comment='Long description'
    )
    profile_photo = Column(
        String(1024),
        nullable=True,
        comment='Public URL of the profile photo'
    )
    categories = Column(
        JSONDocument,
        nullable=False,
        default=list,
        comment='Array of category tags'
    )
    addresses = Column(
        JSONDocument,
        nullable=False,
        default=list,
        comment='Array of address documents (lines, city, link, phones, emails, availabilities)'
    )
    created_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Creation timestamp'
    )
    updated_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Last modification timestamp'
    )
    user_id = Column(
        String(255),
        nullable=True,
        comment='Auth uid of the last editor'
    )
    created_by = Column(
        String(255),
        nullable=True,
        comment='Username that created the listing'
    )
    updated_by = Column(
        String(255),
        nullable=True,
        comment='Username that last updated the listing'
    )

    # Wire name -> column name
    FIELD_MAP = {
        'name': 'name',
        'brief': 'brief',
        'description': 'description',
        'profilePhoto': 'profile_photo',
        'categories': 'categories',
        'addresses': 'addresses',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
        'user_id': 'user_id',
        'createdBy': 'created_by',
        'updatedBy': 'updated_by',
    }

    def to_document(self) -> dict:
        """Convert row to the camelCase document shape."""
        document = {'id': self.id}
        for key, column in self.FIELD_MAP.items():
            document[key] = getattr(self, column)
        return document

    def __repr__(self):
        return f"<BusinessRecord(id='{self.id}', name='{self.name}')>"
