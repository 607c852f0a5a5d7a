"""
Business entity model.

Pydantic models describing a directory listing and its nested address,
phone, email and opening-hours structures. Field names follow the
camelCase keys used by the document store and the spreadsheet format.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_COUNTRY_CODE = '+91'


class Weekday(str, Enum):
    """The seven schedule keys."""
    MONDAY = 'monday'
    TUESDAY = 'tuesday'
    WEDNESDAY = 'wednesday'
    THURSDAY = 'thursday'
    FRIDAY = 'friday'
    SATURDAY = 'saturday'
    SUNDAY = 'sunday'


WEEKDAYS = tuple(Weekday)


class PhoneNumber(BaseModel):
    """A phone number attached to an address."""

    number: str = Field(..., description="Digit string")
    countryCode: str = Field(DEFAULT_COUNTRY_CODE, description="Dialling prefix, e.g. +91")
    hasWhatsapp: bool = Field(False, description="Reachable on WhatsApp")


class TimeSlot(BaseModel):
    """Opening interval within a day (24-hour HH:MM)."""

    openTime: str = Field(..., pattern=r'^([01]\d|2[0-3]):[0-5]\d$')
    closeTime: str = Field(..., pattern=r'^([01]\d|2[0-3]):[0-5]\d$')


class DaySchedule(BaseModel):
    isOpen: bool = False
    timeSlots: List[TimeSlot] = Field(default_factory=list)


class Availability(BaseModel):
    """Weekly opening hours for one address."""

    model_config = ConfigDict(use_enum_values=True)

    enabled: bool = False
    schedule: Dict[Weekday, DaySchedule] = Field(default_factory=dict)

    def day(self, weekday) -> Optional[DaySchedule]:
        key = Weekday(weekday).value
        for name, schedule in self.schedule.items():
            if Weekday(name).value == key:
                return schedule
        return None

    def open_days(self) -> List[str]:
        """Weekdays marked open, in calendar order."""
        days = []
        for weekday in WEEKDAYS:
            schedule = self.day(weekday)
            if schedule is not None and schedule.isOpen:
                days.append(weekday.value)
        return days

    def closed_days(self) -> List[str]:
        """Weekdays not marked open, in calendar order."""
        open_days = set(self.open_days())
        return [d.value for d in WEEKDAYS if d.value not in open_days]


class Address(BaseModel):
    """One location of a business with its own contact details."""

    lines: List[str] = Field(default_factory=list)
    city: str = ''
    link: Optional[str] = Field('', description="External map link")
    phoneNumbers: List[PhoneNumber] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)
    availabilities: Optional[Availability] = None


class Business(BaseModel):
    """A directory listing."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    brief: str = ''
    description: str = ''
    profilePhoto: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    addresses: List[Address] = Field(default_factory=list)

    # Audit
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    user_id: Optional[str] = None
    createdBy: Optional[str] = None
    updatedBy: Optional[str] = None

    @property
    def cities(self) -> List[str]:
        return [address.city for address in self.addresses]
