"""
Business Import Service - Validation gate and concurrent dispatch for bulk uploads.

This module turns spreadsheet rows into creation-ready business records:
1. Reshape each flat row into the nested document shape
2. Validate every row against the record schema, collecting all errors
3. Reject rows that duplicate an existing business (or an earlier row)
4. Dispatch the accepted records to the create operation concurrently

The gate is all-or-nothing: if any row has an error, no record is
returned for creation. Dispatch settles every create before reporting,
with no retry and no rollback of the ones that succeeded.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from backend.models.business import Business
from services.excel_import_service import read_rows, reshape_row
from services.record_validator import validate_record

logger = logging.getLogger(__name__)


class ImportValidationResult(BaseModel):
    """Outcome of validating one sheet."""

    valid_records: List[Dict[str, Any]] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    total_rows: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors and bool(self.valid_records)


class DispatchSummary(BaseModel):
    """Settled outcome of a concurrent bulk create."""

    succeeded: int = 0
    failed: int = 0
    created_ids: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


def row_number(index: int) -> int:
    """Spreadsheet row for a 0-based data index (row 1 is the header)."""
    return index + 2


def format_row_error(index: int, path: str, message: str) -> str:
    return f"Row {row_number(index)}: {path} - {message}"


def _as_document(business: Union[Business, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(business, Business):
        return business.model_dump()
    return business


def _lower(value: Optional[str]) -> str:
    return (value or '').strip().lower()


def find_duplicate(
    record: Dict[str, Any],
    existing: Iterable[Union[Business, Dict[str, Any]]]
) -> Optional[Dict[str, Any]]:
    """
    Find an existing business the record duplicates.

    A duplicate has the same name (case-insensitive) and, for at least one
    pair of addresses, the same city (case-insensitive), a shared phone
    number (exact digit string) and a shared email (case-insensitive).

    Returns:
        Dict with the matched name, city, phone and email, or None
    """
    name = _lower(record.get('name'))

    for candidate in existing:
        candidate = _as_document(candidate)
        if _lower(candidate.get('name')) != name:
            continue

        for address in record.get('addresses') or []:
            phones = {p.get('number') for p in address.get('phoneNumbers') or []}
            emails = {_lower(e) for e in address.get('emails') or []}

            for other in candidate.get('addresses') or []:
                if _lower(other.get('city')) != _lower(address.get('city')):
                    continue
                phone = next(
                    (p.get('number') for p in other.get('phoneNumbers') or [] if p.get('number') in phones),
                    None
                )
                email = next((e for e in other.get('emails') or [] if _lower(e) in emails), None)
                if phone and email:
                    return {
                        'name': candidate.get('name'),
                        'city': other.get('city'),
                        'phone': phone,
                        'email': email,
                    }
    return None


class BusinessImportService:
    """
    Framework-agnostic bulk import service.

    Used by the API (upload validation), the Celery task (dispatch) and
    the CLI (direct imports).
    """

    def __init__(self, progress_callback: Optional[Callable[[str, float, str], None]] = None):
        """
        Initialize import service.

        Args:
            progress_callback: Optional callback(stage, percent, message) for progress updates
        """
        self.progress_callback = progress_callback

    def _emit_progress(self, stage: str, percent: float, message: str):
        """Emit progress update if callback is provided."""
        if self.progress_callback:
            self.progress_callback(stage, percent, message)
        logger.info(f"[{stage}] {percent:.1f}% - {message}")

    def validate_rows(
        self,
        rows: Sequence[Dict[str, Any]],
        existing: Sequence[Union[Business, Dict[str, Any]]] = ()
    ) -> ImportValidationResult:
        """
        Reshape and validate every row of a sheet.

        Args:
            rows: Flat row dictionaries from read_rows
            existing: Businesses already stored, for duplicate detection

        Returns:
            ImportValidationResult; valid_records is empty whenever errors is not
        """
        errors: List[str] = []
        accepted: List[Dict[str, Any]] = []
        existing_docs = [_as_document(b) for b in existing]

        for index, row in enumerate(rows):
            record = reshape_row(row)
            field_errors = validate_record(record)
            if field_errors:
                errors.extend(format_row_error(index, path, message) for path, message in field_errors)
                continue

            match = find_duplicate(record, existing_docs) or find_duplicate(record, accepted)
            if match:
                errors.append(format_row_error(
                    index, 'name',
                    f"Duplicate of existing business \"{match['name']}\" in {match['city']} "
                    f"(phone {match['phone']}, email {match['email']})"
                ))
                continue

            accepted.append(record)

        if errors:
            logger.warning(f"Sheet rejected: {len(errors)} errors across {len(rows)} rows")
            return ImportValidationResult(valid_records=[], errors=errors, total_rows=len(rows))

        logger.info(f"Sheet accepted: {len(accepted)} records ready")
        return ImportValidationResult(valid_records=accepted, errors=[], total_rows=len(rows))

    def validate_file(
        self,
        source,
        existing: Sequence[Union[Business, Dict[str, Any]]] = ()
    ) -> ImportValidationResult:
        """
        Read a workbook and validate its rows.

        Raises:
            WorkbookReadError: If the workbook cannot be read
        """
        self._emit_progress('parsing', 10.0, "Reading workbook")
        rows = read_rows(source)

        self._emit_progress('validating', 50.0, f"Validating {len(rows)} rows")
        result = self.validate_rows(rows, existing)

        if result.errors:
            self._emit_progress('validated', 100.0, f"{len(result.errors)} errors found")
        else:
            self._emit_progress('validated', 100.0, f"{len(result.valid_records)} records ready")
        return result

    async def dispatch_async(
        self,
        records: Sequence[Dict[str, Any]],
        create: Callable[[Dict[str, Any]], str]
    ) -> DispatchSummary:
        """Run every create concurrently and wait for all of them to settle."""
        self._emit_progress('dispatching', 0.0, f"Creating {len(records)} businesses")

        outcomes = await asyncio.gather(
            *(asyncio.to_thread(create, record) for record in records),
            return_exceptions=True
        )

        summary = DispatchSummary()
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, BaseException):
                summary.failed += 1
                summary.errors.append(f"{record.get('name')}: {outcome}")
                logger.error(f"Failed to create business '{record.get('name')}': {outcome}")
            else:
                summary.succeeded += 1
                summary.created_ids.append(outcome)

        self._emit_progress(
            'complete', 100.0,
            f"Created {summary.succeeded} of {summary.total} businesses ({summary.failed} failed)"
        )
        return summary

    def dispatch(
        self,
        records: Sequence[Dict[str, Any]],
        create: Callable[[Dict[str, Any]], str]
    ) -> DispatchSummary:
        """
        Create every record concurrently.

        Args:
            records: Validated creation payloads
            create: Callable persisting one payload and returning its id

        Returns:
            DispatchSummary with succeeded/failed counts and created ids
        """
        if not records:
            return DispatchSummary()
        return asyncio.run(self.dispatch_async(records, create))
