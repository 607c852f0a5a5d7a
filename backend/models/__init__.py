"""Models package for the business directory."""
from backend.models.schema import Base, BusinessRecord
from backend.models.business import (
    Address, Availability, Business, DaySchedule, PhoneNumber, TimeSlot, Weekday, WEEKDAYS
)

__all__ = [
    'Base', 'BusinessRecord',
    'Address', 'Availability', 'Business', 'DaySchedule', 'PhoneNumber', 'TimeSlot',
    'Weekday', 'WEEKDAYS',
]
