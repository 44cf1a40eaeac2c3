"""
Shared pytest fixtures.
"""

import copy
from datetime import date

import pytest

from youth_profiles.catalogs import Catalogs, CountryCatalog, init_catalogs


TODAY = date(2024, 6, 1)

TEST_COUNTRIES = {
    'FI': 'Suomi',
    'SE': 'Ruotsi',
    'EE': 'Viro',
    'DE': 'Saksa',
    'US': 'Yhdysvallat',
}

VALID_PROFILE = {
    'firstName': 'Jane',
    'lastName': 'Doe',
    'primaryAddress': {
        'address': 'Mainstreet 1',
        'city': 'Helsinki',
        'postalCode': '00100',
        'countryCode': 'FI'
    },
    'email': 'x@example.com',
    'phone': '+358401234567',
    'birthDate': '2008-05-01',
    'profileLanguage': 'FINNISH',
    'languageAtHome': 'FINNISH',
    'schoolName': '',
    'schoolClass': '',
    'photoUsageApproved': 'false',
    'approverFirstName': 'A',
    'approverLastName': 'B',
    'approverEmail': 'a@b.com',
    'approverPhone': '+358401111111',
    'addresses': []
}


@pytest.fixture
def catalogs():
    """Small fixed catalog, also installed process-wide."""
    return init_catalogs(Catalogs(CountryCatalog(TEST_COUNTRIES, locale='fi')))


@pytest.fixture
def profile_payload():
    """A fresh copy of a fully valid profile payload."""
    return copy.deepcopy(VALID_PROFILE)


@pytest.fixture
def app(catalogs):
    from youth_profiles import create_app, db

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'CATALOGS': catalogs,
    })

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
