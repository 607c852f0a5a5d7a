"""
Business Service - Persistence operations for directory listings.

Thin document-store layer over SQLAlchemy: payloads come in and go out in
the camelCase document shape, ids are opaque strings assigned here.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from backend.models.business import Business
from backend.models.schema import BusinessRecord

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 5

# Assigned by the store, never taken from a payload
_MANAGED_FIELDS = {'id', 'createdAt', 'updatedAt'}


class BusinessNotFoundError(Exception):
    """Raised when no business exists for an id."""

    def __init__(self, business_id: str):
        self.business_id = business_id
        super().__init__(f"Business {business_id} not found")


def _to_business(record: BusinessRecord) -> Business:
    return Business.model_validate(record.to_document())


def _jsonable(value: Any) -> Any:
    """Plain JSON structure for nested pydantic values."""
    if hasattr(value, 'model_dump'):
        return value.model_dump()
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


class BusinessService:
    """
    CRUD operations for businesses.

    Args:
        db: SQLAlchemy session; callers own its lifetime
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_record(self, business_id: str) -> Optional[BusinessRecord]:
        return self.db.get(BusinessRecord, business_id)

    def create(self, payload: Dict[str, Any]) -> str:
        """
        Store a new business.

        Args:
            payload: Business fields in document shape (any id is ignored)

        Returns:
            Assigned id
        """
        now = datetime.utcnow()
        record = BusinessRecord(id=uuid.uuid4().hex, created_at=now, updated_at=now)

        for key, column in BusinessRecord.FIELD_MAP.items():
            if key in _MANAGED_FIELDS or key not in payload:
                continue
            setattr(record, column, _jsonable(payload[key]))

        self.db.add(record)
        self.db.commit()
        logger.info(f"Created business {record.id} ('{record.name}')")
        return record.id

    def get_all(self) -> List[Business]:
        records = self.db.query(BusinessRecord).order_by(BusinessRecord.created_at).all()
        return [_to_business(r) for r in records]

    def get_by_id(self, business_id: str) -> Optional[Business]:
        """Fetch one business; None when the id is unknown."""
        record = self._get_record(business_id)
        if record is None:
            return None
        return _to_business(record)

    def update(self, business_id: str, data: Dict[str, Any]) -> bool:
        """
        Apply a partial update.

        The id key is ignored. Nothing is written unless at least one field
        differs from the stored value; a write also bumps updatedAt.

        Returns:
            True if a write happened, False if the data was unchanged

        Raises:
            BusinessNotFoundError: If the business does not exist
        """
        record = self._get_record(business_id)
        if record is None:
            raise BusinessNotFoundError(business_id)

        changes = {}
        for key, value in data.items():
            column = BusinessRecord.FIELD_MAP.get(key)
            if column is None or key in _MANAGED_FIELDS:
                continue
            value = _jsonable(value)
            if getattr(record, column) != value:
                changes[column] = value

        if not changes:
            logger.debug(f"No changes for business {business_id}, skipping write")
            return False

        for column, value in changes.items():
            setattr(record, column, value)
        record.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"Updated business {business_id}: {sorted(changes)}")
        return True

    def delete(self, business_id: str):
        """
        Remove a business.

        Raises:
            BusinessNotFoundError: If the business does not exist
        """
        record = self._get_record(business_id)
        if record is None:
            raise BusinessNotFoundError(business_id)
        self.db.delete(record)
        self.db.commit()
        logger.info(f"Deleted business {business_id}")

    def get_by_city(self, city: str) -> List[Business]:
        """Businesses with at least one address in ``city`` (exact match)."""
        return [b for b in self.get_all() if city in b.cities]

    def get_by_category(self, category: str) -> List[Business]:
        return [b for b in self.get_all() if category in b.categories]

    def get_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> List[Business]:
        """Newest businesses first."""
        records = (
            self.db.query(BusinessRecord)
            .order_by(BusinessRecord.created_at.desc())
            .limit(limit)
            .all()
        )
        return [_to_business(r) for r in records]
