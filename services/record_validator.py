"""
Record Validator - Schema checks for business creation payloads.

Validates a reshaped business record and returns every violation as a
(field_path, message) tuple. Paths use dotted notation with list indexes,
e.g. ``addresses.0.emails.1``. Pydantic does the walking; callers only
ever see the tuples.
"""

import logging
from typing import Annotated, Any, Dict, List, Tuple

from email_validator import EmailNotValidError, validate_email
from pydantic import AnyUrl, BaseModel, TypeAdapter, ValidationError, field_validator
from pydantic_core import PydanticCustomError
from pydantic.functional_validators import AfterValidator

logger = logging.getLogger(__name__)

FieldError = Tuple[str, str]

_url_adapter = TypeAdapter(AnyUrl)


def _min_length(value: str, length: int, message: str) -> str:
    if len(value) < length:
        raise PydanticCustomError('too_short', message)
    return value


def _optional_url(value: Any) -> str:
    if value is None or value == '':
        return ''
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise PydanticCustomError('url', 'Must be a valid URL')
    return value


def _email(value: str) -> str:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise PydanticCustomError('email', 'Invalid email format')
    return value


def _address_line(value: str) -> str:
    if not value.strip():
        raise PydanticCustomError('empty_line', 'Address line cannot be empty')
    return value


OptionalUrl = Annotated[Any, AfterValidator(_optional_url)]
Email = Annotated[str, AfterValidator(_email)]
AddressLine = Annotated[str, AfterValidator(_address_line)]


class PhoneRecord(BaseModel):
    number: str
    countryCode: str
    hasWhatsapp: bool


class AddressRecord(BaseModel):
    lines: List[AddressLine]
    city: str
    link: OptionalUrl = ''
    phoneNumbers: List[PhoneRecord] = []
    emails: List[Email] = []

    @field_validator('lines')
    @classmethod
    def check_lines(cls, value):
        if len(value) < 1:
            raise PydanticCustomError('too_short', 'At least one address line is required')
        return value

    @field_validator('city')
    @classmethod
    def check_city(cls, value):
        return _min_length(value.strip(), 1, 'City is required')


class BusinessRecordSchema(BaseModel):
    name: str
    brief: str
    description: str
    profilePhoto: OptionalUrl = ''
    categories: List[str]
    addresses: List[AddressRecord]

    @field_validator('name')
    @classmethod
    def check_name(cls, value):
        return _min_length(value, 2, 'Name must be at least 2 characters')

    @field_validator('brief')
    @classmethod
    def check_brief(cls, value):
        return _min_length(value, 10, 'Brief description must be at least 10 characters')

    @field_validator('description')
    @classmethod
    def check_description(cls, value):
        return _min_length(value, 20, 'Description must be at least 20 characters')

    @field_validator('categories')
    @classmethod
    def check_categories(cls, value):
        if len(value) < 1:
            raise PydanticCustomError('too_short', 'At least one category is required')
        return value

    @field_validator('addresses')
    @classmethod
    def check_addresses(cls, value):
        if len(value) < 1:
            raise PydanticCustomError('too_short', 'At least one address is required')
        return value


def format_path(loc) -> str:
    return '.'.join(str(part) for part in loc)


def validate_record(data: Dict[str, Any]) -> List[FieldError]:
    """
    Validate a business payload.

    Args:
        data: Record in the nested document shape

    Returns:
        List of (field_path, message) tuples; empty when the record is valid
    """
    try:
        BusinessRecordSchema.model_validate(data)
    except ValidationError as e:
        errors = [(format_path(err['loc']), err['msg']) for err in e.errors()]
        logger.debug(f"Record '{data.get('name')}' failed validation: {errors}")
        return errors
    return []


def is_valid(data: Dict[str, Any]) -> bool:
    return not validate_record(data)
