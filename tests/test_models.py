"""
Tests for the business document models.
"""

import pytest
from pydantic import ValidationError

from conftest import make_record

from backend.models.business import Availability, Business, PhoneNumber, TimeSlot
from backend.models.schema import BusinessRecord


class TestAvailability:

    def test_open_and_closed_days(self):
        availability = Availability(enabled=True, schedule={
            'monday': {'isOpen': True, 'timeSlots': [{'openTime': '09:00', 'closeTime': '17:00'}]},
            'saturday': {'isOpen': True},
            'sunday': {'isOpen': False},
        })
        assert availability.open_days() == ['monday', 'saturday']
        assert availability.closed_days() == ['tuesday', 'wednesday', 'thursday', 'friday', 'sunday']
        assert availability.day('monday').timeSlots[0].closeTime == '17:00'
        assert availability.day('tuesday') is None

    def test_time_format(self):
        with pytest.raises(ValidationError):
            TimeSlot(openTime='9am', closeTime='17:00')
        with pytest.raises(ValidationError):
            TimeSlot(openTime='24:00', closeTime='17:00')


class TestBusiness:

    def test_phone_defaults(self):
        phone = PhoneNumber(number='9876543210')
        assert phone.countryCode == '+91'
        assert phone.hasWhatsapp is False

    def test_document_round_trip(self):
        record = BusinessRecord(id='b1', created_by='jane')
        for key, column in BusinessRecord.FIELD_MAP.items():
            if key in make_record():
                setattr(record, column, make_record()[key])

        business = Business.model_validate(record.to_document())
        assert business.id == 'b1'
        assert business.createdBy == 'jane'
        assert business.cities == ['New York']
