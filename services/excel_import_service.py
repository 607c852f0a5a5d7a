"""
Excel Import Service - Spreadsheet codec for business listings.

Reads the bulk-upload workbook into flat row dictionaries, reshapes the
flattened address-group columns into nested business records, and writes
the same column scheme back out (sample file and directory export).

Column scheme (one row per business):
    name, brief, description, profilePhoto, categories (comma separated)
    addressLine1, addressLine2, city, mapLink,
    phoneNumber1, phoneCountryCode1, phoneWhatsapp1,
    phoneNumber2, phoneCountryCode2, phoneWhatsapp2,
    email1, email2
Address group n > 1 repeats the address columns with an ``_n`` suffix
(``addressLine1_2``, ``city_2``, ...).
"""

import io
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Sequence, Union

import openpyxl
from openpyxl.utils import get_column_letter

from backend.models.business import Business, DEFAULT_COUNTRY_CODE

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ['.xlsx']
SAMPLE_SHEET_NAME = 'Sample'
EXPORT_SHEET_NAME = 'Businesses'
PHONE_SLOTS = 2
EMAIL_SLOTS = 2

SCALAR_COLUMNS = ['name', 'brief', 'description', 'profilePhoto', 'categories']


class WorkbookReadError(Exception):
    """Raised when an upload cannot be read as a workbook."""


def is_excel_filename(filename: Optional[str]) -> bool:
    """Check whether a filename has an accepted spreadsheet extension."""
    if not filename:
        return False
    return Path(filename).suffix.lower() in ALLOWED_EXTENSIONS


def group_suffix(index: int) -> str:
    """Column suffix for address group ``index`` (1-based)."""
    return '' if index == 1 else f'_{index}'


def address_columns(index: int) -> List[str]:
    """Ordered column names for one address group."""
    suffix = group_suffix(index)
    columns = [f'addressLine1{suffix}', f'addressLine2{suffix}', f'city{suffix}', f'mapLink{suffix}']
    for slot in range(1, PHONE_SLOTS + 1):
        columns += [
            f'phoneNumber{slot}{suffix}',
            f'phoneCountryCode{slot}{suffix}',
            f'phoneWhatsapp{slot}{suffix}',
        ]
    columns += [f'email{slot}{suffix}' for slot in range(1, EMAIL_SLOTS + 1)]
    return columns


def normalize_cell(value: Any) -> Optional[str]:
    """
    Convert an openpyxl cell value to the string the reshaper expects.

    Empty cells and blank strings become None. Whole-number floats lose
    their ``.0`` so phone numbers typed as numbers stay digit strings.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def read_rows(source: Union[str, Path, bytes, BinaryIO]) -> List[Dict[str, str]]:
    """
    Read the first worksheet into a list of row dictionaries.

    The first row is the header. Blank rows are skipped and empty cells
    are left out of the row dictionary.

    Args:
        source: File path, raw bytes or a binary file object

    Returns:
        List of {column: value} dictionaries in sheet order

    Raises:
        WorkbookReadError: If the content is not a readable workbook
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        wb = openpyxl.load_workbook(source, read_only=True, data_only=True)
    except Exception as e:
        logger.error(f"Could not open workbook: {e}")
        raise WorkbookReadError(f"Could not read Excel file: {e}") from e

    try:
        ws = wb[wb.sheetnames[0]]
        rows_iter = ws.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if header_row is None:
            return []

        headers = [normalize_cell(h) for h in header_row]
        rows = []
        for values in rows_iter:
            row = {}
            for header, value in zip(headers, values):
                cell = normalize_cell(value)
                if header and cell is not None:
                    row[header] = cell
            if row:
                rows.append(row)

        logger.info(f"Read {len(rows)} rows from sheet '{ws.title}'")
        return rows
    finally:
        wb.close()


def _parse_whatsapp(value: Optional[str]) -> bool:
    return (value or '').lower() == 'true'


def _reshape_address(row: Dict[str, str], index: int) -> Dict[str, Any]:
    suffix = group_suffix(index)

    phone_numbers = []
    for slot in range(1, PHONE_SLOTS + 1):
        number = row.get(f'phoneNumber{slot}{suffix}')
        if not number:
            continue
        phone_numbers.append({
            'number': number,
            'countryCode': row.get(f'phoneCountryCode{slot}{suffix}') or DEFAULT_COUNTRY_CODE,
            'hasWhatsapp': _parse_whatsapp(row.get(f'phoneWhatsapp{slot}{suffix}')),
        })

    emails = [
        row[f'email{slot}{suffix}']
        for slot in range(1, EMAIL_SLOTS + 1)
        if row.get(f'email{slot}{suffix}')
    ]

    lines = [row.get(f'addressLine1{suffix}'), row.get(f'addressLine2{suffix}')]

    return {
        'lines': [line for line in lines if line],
        'city': row.get(f'city{suffix}'),
        'link': row.get(f'mapLink{suffix}') or '',
        'phoneNumbers': phone_numbers,
        'emails': emails,
    }


def reshape_row(row: Dict[str, str]) -> Dict[str, Any]:
    """
    Turn one flat spreadsheet row into a nested business record.

    Address groups are read from index 1 upward and scanning stops at the
    first index without an ``addressLine1`` column value, so groups must be
    contiguous.
    """
    addresses = []
    index = 1
    while row.get(f'addressLine1{group_suffix(index)}'):
        addresses.append(_reshape_address(row, index))
        index += 1

    categories_cell = row.get('categories')
    categories = [c.strip() for c in categories_cell.split(',')] if categories_cell else []

    return {
        'name': row.get('name'),
        'brief': row.get('brief'),
        'description': row.get('description'),
        'profilePhoto': row.get('profilePhoto') or '',
        'categories': categories,
        'addresses': addresses,
    }


def flatten_business(business: Union[Business, Dict[str, Any]]) -> Dict[str, str]:
    """Inverse of reshape_row for export: one flat row per business."""
    if isinstance(business, Business):
        business = business.model_dump()

    row = {
        'name': business.get('name') or '',
        'brief': business.get('brief') or '',
        'description': business.get('description') or '',
        'profilePhoto': business.get('profilePhoto') or '',
        'categories': ', '.join(business.get('categories') or []),
    }

    for index, address in enumerate(business.get('addresses') or [], start=1):
        suffix = group_suffix(index)
        lines = address.get('lines') or []
        row[f'addressLine1{suffix}'] = lines[0] if lines else ''
        if len(lines) > 1:
            row[f'addressLine2{suffix}'] = ', '.join(lines[1:])
        row[f'city{suffix}'] = address.get('city') or ''
        if address.get('link'):
            row[f'mapLink{suffix}'] = address['link']

        for slot, phone in enumerate((address.get('phoneNumbers') or [])[:PHONE_SLOTS], start=1):
            row[f'phoneNumber{slot}{suffix}'] = phone.get('number', '')
            row[f'phoneCountryCode{slot}{suffix}'] = phone.get('countryCode') or DEFAULT_COUNTRY_CODE
            row[f'phoneWhatsapp{slot}{suffix}'] = 'true' if phone.get('hasWhatsapp') else 'false'

        for slot, email in enumerate((address.get('emails') or [])[:EMAIL_SLOTS], start=1):
            row[f'email{slot}{suffix}'] = email

    return row


def _header_for(rows: Sequence[Dict[str, str]]) -> List[str]:
    """Header covering every address group present in ``rows``."""
    groups = 1
    for row in rows:
        index = 1
        while f'addressLine1{group_suffix(index + 1)}' in row:
            index += 1
        groups = max(groups, index)

    header = list(SCALAR_COLUMNS)
    for index in range(1, groups + 1):
        header += address_columns(index)
    return header


def write_workbook(rows: Sequence[Dict[str, str]], sheet_name: str) -> bytes:
    """Write flat rows to an .xlsx workbook and return its bytes."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_name

    header = _header_for(rows)
    ws.append(header)
    for row in rows:
        ws.append([row.get(column) for column in header])

    for col_idx, column in enumerate(header, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = max(12, len(column) + 2)

    buffer = io.BytesIO()
    wb.save(buffer)
    logger.debug(f"Wrote {len(rows)} rows to sheet '{sheet_name}'")
    return buffer.getvalue()


def get_sample_rows() -> List[Dict[str, str]]:
    """The two example rows offered as a template download."""
    return [
        {
            'name': 'First Business Name',
            'brief': 'A brief description of the first business (min 10 chars)',
            'description': 'A detailed description of the first business that explains '
                           'services and offerings (min 20 chars)',
            'profilePhoto': 'https://example.com/photo1.jpg',
            'categories': 'Restaurant, Cafe, Food',
            'addressLine1': '123 Main St',
            'addressLine2': 'Suite 100',
            'city': 'New York',
            'mapLink': 'https://maps.google.com/location1',
            'phoneNumber1': '1234567890',
            'phoneCountryCode1': '+1',
            'phoneWhatsapp1': 'true',
            'phoneNumber2': '0987654321',
            'phoneCountryCode2': '+1',
            'phoneWhatsapp2': 'false',
            'email1': 'contact@business1.com',
            'email2': 'info@business1.com',
        },
        {
            'name': 'Second Business Name',
            'brief': 'A brief description of the second business (min 10 chars)',
            'description': 'A detailed description of the second business that explains '
                           'services and offerings (min 20 chars)',
            'profilePhoto': 'https://example.com/photo2.jpg',
            'categories': 'Retail, Fashion, Accessories',
            'addressLine1': '456 Oak Avenue',
            'addressLine2': 'Floor 2',
            'city': 'Los Angeles',
            'mapLink': 'https://maps.google.com/location2',
            'phoneNumber1': '2345678901',
            'phoneCountryCode1': '+1',
            'phoneWhatsapp1': 'true',
            'email1': 'la@business2.com',
            'addressLine1_2': '789 Pine Street',
            'addressLine2_2': 'Shop 45',
            'city_2': 'San Francisco',
            'mapLink_2': 'https://maps.google.com/location3',
            'phoneNumber1_2': '3456789012',
            'phoneCountryCode1_2': '+1',
            'phoneWhatsapp1_2': 'false',
            'phoneNumber2_2': '4567890123',
            'phoneCountryCode2_2': '+1',
            'phoneWhatsapp2_2': 'true',
            'email1_2': 'sf@business2.com',
            'email2_2': 'info@business2.com',
        },
    ]


def build_sample_workbook() -> bytes:
    """Sample upload file (business_upload_sample.xlsx)."""
    return write_workbook(get_sample_rows(), SAMPLE_SHEET_NAME)


def export_workbook(businesses: Sequence[Union[Business, Dict[str, Any]]]) -> bytes:
    """Export businesses in the upload column scheme."""
    return write_workbook([flatten_business(b) for b in businesses], EXPORT_SHEET_NAME)
