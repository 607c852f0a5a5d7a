"""
Pytest configuration and fixtures for business directory tests.
"""

import io
import os
import pytest
import openpyxl
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

from backend.models import job  # noqa: F401
from backend.models.business import Business
from backend.models.schema import Base

# Load environment
load_dotenv()

# In-memory SQLite unless a separate test database is configured
TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL', 'sqlite://')


@pytest.fixture
def engine():
    """Create a fresh test database for each test."""
    if TEST_DATABASE_URL.startswith('sqlite'):
        eng = create_engine(
            TEST_DATABASE_URL,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )
    else:
        eng = create_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session(session_factory):
    """Create a new database session for a test."""
    sess = session_factory()
    yield sess
    sess.close()


def make_address(city='New York', lines=None, phone='1234567890', email='contact@example.com', **extra):
    address = {
        'lines': lines or ['123 Main St'],
        'city': city,
        'link': '',
        'phoneNumbers': [{'number': phone, 'countryCode': '+1', 'hasWhatsapp': False}] if phone else [],
        'emails': [email] if email else [],
    }
    address.update(extra)
    return address


def make_record(name='Sunrise Bakery', city='New York', categories=None, **extra):
    """A payload that passes record validation."""
    record = {
        'name': name,
        'brief': 'Fresh bread every morning',
        'description': 'Neighbourhood bakery with sourdough, pastries and coffee',
        'profilePhoto': '',
        'categories': categories or ['Bakery', 'Food'],
        'addresses': [make_address(city=city)],
    }
    record.update(extra)
    return record


@pytest.fixture
def valid_record():
    return make_record()


@pytest.fixture
def directory():
    """A small in-memory directory for search tests."""
    return [
        Business(
            id='b1', name='Sunrise Bakery', brief='Fresh bread every morning',
            categories=['Bakery', 'Food'],
            addresses=[make_address(city='New York')]
        ),
        Business(
            id='b2', name='Harbor Books', brief='Used and rare books',
            categories=['Retail', 'Books'],
            addresses=[make_address(city='Boston'), make_address(city='New York City')]
        ),
        Business(
            id='b3', name='Thread & Needle', brief='Tailoring and alterations',
            categories=['Retail', 'Fashion'],
            addresses=[make_address(city='Los Angeles')]
        ),
        Business(
            id='b4', name='Corner Cafe', brief='Coffee near the station',
            categories=['Cafe', 'Food'],
            addresses=[make_address(city='Boston')]
        ),
        Business(
            id='b5', name='Pixel Repairs', brief='Phone and laptop repair',
            categories=['Electronics'],
            addresses=[make_address(city='San Francisco')]
        ),
        Business(
            id='b6', name='Green Leaf', brief='Organic groceries',
            categories=['Food', 'Retail'],
            addresses=[make_address(city='New York')]
        ),
    ]


def build_workbook(rows, header=None) -> bytes:
    """Write row dicts to an in-memory .xlsx (first row is the header)."""
    if header is None:
        header = []
        for row in rows:
            for key in row:
                if key not in header:
                    header.append(key)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(header)
    for row in rows:
        ws.append([row.get(column) for column in header])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def sheet_row(name='Sunrise Bakery', city='New York', phone='1234567890', email='contact@example.com', **extra):
    """A flat spreadsheet row that passes validation."""
    row = {
        'name': name,
        'brief': 'Fresh bread every morning',
        'description': 'Neighbourhood bakery with sourdough, pastries and coffee',
        'categories': 'Bakery, Food',
        'addressLine1': '123 Main St',
        'city': city,
        'phoneNumber1': phone,
        'phoneCountryCode1': '+1',
        'phoneWhatsapp1': 'false',
        'email1': email,
    }
    row.update(extra)
    return row
