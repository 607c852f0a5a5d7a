"""
Bulk import session - the upload dialog flow as an explicit state machine.

IDLE -> FILE_SELECTED -> PARSING -> VALIDATION_FAILED | VALID_RECORDS_READY
VALID_RECORDS_READY -> UPLOADING -> SUCCESS | FAILURE

A failed validation keeps the session open for another file. Success
notifies the caller through ``on_complete``.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from services.business_import_service import (
    BusinessImportService, DispatchSummary, ImportValidationResult
)
from services.excel_import_service import WorkbookReadError, is_excel_filename

logger = logging.getLogger(__name__)

EMPTY_SHEET_MESSAGE = "No records found in file"


class ImportDialogState(str, Enum):
    IDLE = 'idle'
    FILE_SELECTED = 'file_selected'
    PARSING = 'parsing'
    VALIDATION_FAILED = 'validation_failed'
    VALID_RECORDS_READY = 'valid_records_ready'
    UPLOADING = 'uploading'
    SUCCESS = 'success'
    FAILURE = 'failure'


TRANSITIONS = {
    ImportDialogState.IDLE: {ImportDialogState.FILE_SELECTED},
    ImportDialogState.FILE_SELECTED: {ImportDialogState.PARSING, ImportDialogState.FILE_SELECTED},
    ImportDialogState.PARSING: {ImportDialogState.VALIDATION_FAILED, ImportDialogState.VALID_RECORDS_READY},
    ImportDialogState.VALIDATION_FAILED: {ImportDialogState.FILE_SELECTED},
    ImportDialogState.VALID_RECORDS_READY: {ImportDialogState.UPLOADING, ImportDialogState.FILE_SELECTED},
    ImportDialogState.UPLOADING: {ImportDialogState.SUCCESS, ImportDialogState.FAILURE},
    ImportDialogState.SUCCESS: set(),
    ImportDialogState.FAILURE: set(),
}


class InvalidTransitionError(Exception):
    """Raised when an action is not allowed in the current state."""


class UnsupportedFileError(ValueError):
    """Raised when the selected file is not an .xlsx workbook."""


class BulkImportSession:
    """
    One pass through the bulk upload dialog.

    Args:
        create: Callable persisting one record and returning its id
        existing: Businesses already stored, for duplicate detection
        on_complete: Called with the DispatchSummary after a successful upload
        import_service: Service doing validation and dispatch
    """

    def __init__(
        self,
        create: Callable[[Dict[str, Any]], str],
        existing: Sequence[Any] = (),
        on_complete: Optional[Callable[[DispatchSummary], None]] = None,
        import_service: Optional[BusinessImportService] = None
    ):
        self.create = create
        self.existing = existing
        self.on_complete = on_complete
        self.import_service = import_service or BusinessImportService()

        self.state = ImportDialogState.IDLE
        self.filename: Optional[str] = None
        self._content: Optional[bytes] = None
        self.total_rows = 0
        self.errors: List[str] = []
        self.valid_records: List[Dict[str, Any]] = []
        self.summary: Optional[DispatchSummary] = None

    def _move(self, target: ImportDialogState):
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"Cannot go from {self.state.value} to {target.value}")
        logger.debug(f"Import session: {self.state.value} -> {target.value}")
        self.state = target

    def select_file(self, filename: str, content: bytes):
        """Pick a workbook. Non-.xlsx files are refused and the state is unchanged."""
        if not is_excel_filename(filename):
            raise UnsupportedFileError("Please upload an Excel file (.xlsx)")
        self._move(ImportDialogState.FILE_SELECTED)
        self.filename = filename
        self._content = content
        self.errors = []
        self.valid_records = []

    def parse(self) -> ImportValidationResult:
        """Read and validate the selected workbook."""
        self._move(ImportDialogState.PARSING)

        try:
            result = self.import_service.validate_file(self._content, self.existing)
        except WorkbookReadError as e:
            result = ImportValidationResult(errors=[str(e)])

        if not result.errors and not result.valid_records:
            result = ImportValidationResult(errors=[EMPTY_SHEET_MESSAGE], total_rows=result.total_rows)

        self.total_rows = result.total_rows
        self.errors = result.errors
        self.valid_records = result.valid_records
        if result.errors:
            self._move(ImportDialogState.VALIDATION_FAILED)
        else:
            self._move(ImportDialogState.VALID_RECORDS_READY)
        return result

    def upload(self) -> DispatchSummary:
        """Create every validated record. Succeeds when at least one was created."""
        self._move(ImportDialogState.UPLOADING)
        self.summary = self.import_service.dispatch(self.valid_records, self.create)

        if self.summary.succeeded > 0:
            self._move(ImportDialogState.SUCCESS)
            if self.on_complete:
                self.on_complete(self.summary)
        else:
            self._move(ImportDialogState.FAILURE)
        return self.summary
