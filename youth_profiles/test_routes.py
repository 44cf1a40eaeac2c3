"""
API Tests

Tests for the youth profile HTTP API:
- Validation endpoint
- Create / update / renew gated by validation
- Listing and details view
- Audit trail
"""

from datetime import date

import pytest

from youth_profiles import db
from youth_profiles.audit_logger import AuditAction, verify_audit_integrity
from youth_profiles.models import AuditLog, MembershipStatus, YouthProfile


def _create(client, payload):
    response = client.post('/api/youth-profiles', json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['profile']


class TestCatalogEndpoints:
    def test_catalogs(self, client):
        response = client.get('/api/catalogs')
        assert response.status_code == 200
        data = response.get_json()
        assert {'value': 'FI', 'label': 'Suomi'} in data['countries']
        assert [o['value'] for o in data['languages']] == ['FINNISH', 'ENGLISH', 'SWEDISH']

    def test_blank_record(self, client):
        response = client.get('/api/youth-profiles/new')
        record = response.get_json()['record']
        assert record['primaryAddress'] == {
            'address': '', 'postalCode': '', 'city': '', 'countryCode': 'FI', 'primary': True
        }
        assert record['addresses'] == []
        assert record['photoUsageApproved'] is None

    def test_security_headers(self, client):
        response = client.get('/api/catalogs')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'


class TestValidateEndpoint:
    def test_valid_record(self, client, profile_payload):
        response = client.post('/api/youth-profiles/validate', json=profile_payload)
        assert response.status_code == 200
        assert response.get_json() == {'ok': True, 'errors': {'addresses': []}}

    def test_invalid_record(self, client, profile_payload):
        profile_payload['firstName'] = ''
        profile_payload['addresses'] = [
            {'address': '', 'city': 'X', 'postalCode': '00100', 'countryCode': 'FI'}
        ]
        response = client.post('/api/youth-profiles/validate', json=profile_payload)
        assert response.status_code == 422
        errors = response.get_json()['errors']
        assert errors == {
            'firstName': 'This field is required',
            'addresses': [{'address': 'This field is required'}],
        }

    def test_missing_payload(self, client):
        response = client.post('/api/youth-profiles/validate', data='nope', content_type='text/plain')
        assert response.status_code == 400

    def test_non_object_payload(self, client):
        response = client.post('/api/youth-profiles/validate', json=[1, 2])
        assert response.status_code == 400

    def test_rejection_is_audited_without_personal_data(self, app, client, profile_payload):
        profile_payload['email'] = 'jane-at-example'
        client.post('/api/youth-profiles/validate', json=profile_payload)
        with app.app_context():
            log = AuditLog.query.filter_by(action=AuditAction.VALIDATION_FAILED).one()
            details = log.to_dict()['details']
            assert details == {'error_count': 1, 'fields': ['email']}
            assert 'jane-at-example' not in log.details_json


class TestCreateProfile:
    def test_create(self, app, client, profile_payload):
        profile = _create(client, profile_payload)
        assert profile['membershipNumber'] == f"YP-{profile['id']:06d}"
        assert profile['membershipStatus'] == MembershipStatus.ACTIVE.value
        assert profile['expiration'].endswith('-08-31')
        assert profile['record']['firstName'] == 'Jane'
        assert profile['record']['photoUsageApproved'] is False
        assert profile['display']['name'] == 'Jane Doe'
        assert profile['display']['address'] == 'Mainstreet 1, 00100 Helsinki'
        assert profile['display']['birthDate'] == '01.05.2008'
        assert profile['display']['approverName'] == 'A B'
        assert profile['display']['country'] == 'Suomi'

        with app.app_context():
            assert YouthProfile.query.count() == 1
            assert AuditLog.query.filter_by(action=AuditAction.PROFILE_CREATED).count() == 1

    def test_invalid_record_is_not_stored(self, app, client, profile_payload):
        profile_payload['addresses'] = [
            {'address': 'Side street 2', 'city': 'Espoo', 'postalCode': '02100', 'countryCode': 'FI'},
            {'address': 'Other 3', 'city': 'Tallinn', 'postalCode': '10111', 'countryCode': 'XX'},
        ]
        response = client.post('/api/youth-profiles', json=profile_payload)
        assert response.status_code == 422
        assert response.get_json()['errors']['addresses'] == [None, {'countryCode': 'Unknown country code'}]
        with app.app_context():
            assert YouthProfile.query.count() == 0

    def test_secondary_addresses_stored_in_order(self, client, profile_payload):
        profile_payload['addresses'] = [
            {'address': 'Side street 2', 'city': 'Espoo', 'postalCode': '02100', 'countryCode': 'FI'},
            {'address': 'Storgatan 1', 'city': 'Stockholm', 'postalCode': '111 22', 'countryCode': 'SE'},
        ]
        profile = _create(client, profile_payload)
        stored = profile['record']['addresses']
        assert [a['address'] for a in stored] == ['Side street 2', 'Storgatan 1']
        assert all(a['primary'] is False for a in stored)


class TestReadProfiles:
    def test_get_missing(self, client):
        response = client.get('/api/youth-profiles/999')
        assert response.status_code == 404
        assert response.get_json()['ok'] is False

    def test_get(self, client, profile_payload):
        created = _create(client, profile_payload)
        response = client.get(f"/api/youth-profiles/{created['id']}")
        assert response.status_code == 200
        assert response.get_json()['profile']['record'] == created['record']

    def test_list_and_filter(self, client, profile_payload):
        _create(client, profile_payload)
        profile_payload['firstName'] = 'Matti'
        profile_payload['lastName'] = 'Meikäläinen'
        _create(client, profile_payload)

        response = client.get('/api/youth-profiles')
        names = [p['lastName'] for p in response.get_json()['profiles']]
        assert names == ['Doe', 'Meikäläinen']

        response = client.get('/api/youth-profiles?firstName=mat')
        profiles = response.get_json()['profiles']
        assert len(profiles) == 1
        assert profiles[0]['firstName'] == 'Matti'
        assert profiles[0]['birthDate'] == '2008-05-01'


class TestUpdateProfile:
    def test_update(self, app, client, profile_payload):
        created = _create(client, profile_payload)
        profile_payload['schoolName'] = 'Kallion lukio'
        profile_payload['schoolClass'] = '2B'
        response = client.put(f"/api/youth-profiles/{created['id']}", json=profile_payload)
        assert response.status_code == 200
        profile = response.get_json()['profile']
        assert profile['display']['school'] == 'Kallion lukio, 2B'
        assert profile['membershipNumber'] == created['membershipNumber']

    def test_invalid_update_keeps_stored_record(self, app, client, profile_payload):
        created = _create(client, profile_payload)
        profile_payload['lastName'] = '   '
        response = client.put(f"/api/youth-profiles/{created['id']}", json=profile_payload)
        assert response.status_code == 422
        assert response.get_json()['errors'] == {
            'lastName': 'This field is required',
            'addresses': [],
        }
        stored = client.get(f"/api/youth-profiles/{created['id']}").get_json()['profile']
        assert stored['record']['lastName'] == 'Doe'

    def test_update_missing(self, client, profile_payload):
        response = client.put('/api/youth-profiles/999', json=profile_payload)
        assert response.status_code == 404

    def test_renew(self, app, client, profile_payload):
        created = _create(client, profile_payload)
        with app.app_context():
            profile = db.session.get(YouthProfile, created['id'])
            profile.membership_status = MembershipStatus.EXPIRED.value
            db.session.commit()

        response = client.post(f"/api/youth-profiles/{created['id']}/renew", json=profile_payload)
        assert response.status_code == 200
        assert response.get_json()['profile']['membershipStatus'] == MembershipStatus.ACTIVE.value

        with app.app_context():
            assert AuditLog.query.filter_by(action=AuditAction.PROFILE_RENEWED).count() == 1
            valid, invalid, _ = verify_audit_integrity()
            assert invalid == 0
            assert valid > 0


class TestMembershipStatus:
    def test_expired_membership(self, app):
        with app.app_context():
            profile = YouthProfile()
            profile.activate(date(2023, 6, 1))
            assert profile.expiration == date(2023, 8, 31)
            assert profile.refresh_status(date(2023, 8, 31)) == MembershipStatus.ACTIVE.value
            assert profile.refresh_status(date(2023, 9, 1)) == MembershipStatus.EXPIRED.value

    def test_lapsed_membership_is_stored_as_expired(self, app, client, profile_payload):
        created = _create(client, profile_payload)
        with app.app_context():
            profile = db.session.get(YouthProfile, created['id'])
            profile.expiration = date(2020, 8, 31)
            db.session.commit()

        response = client.get(f"/api/youth-profiles/{created['id']}")
        assert response.get_json()['profile']['membershipStatus'] == MembershipStatus.EXPIRED.value

        with app.app_context():
            stored = db.session.get(YouthProfile, created['id'])
            assert stored.membership_status == MembershipStatus.EXPIRED.value

    def test_listing_stores_expired_status(self, app, client, profile_payload):
        created = _create(client, profile_payload)
        with app.app_context():
            profile = db.session.get(YouthProfile, created['id'])
            profile.expiration = date(2020, 8, 31)
            db.session.commit()

        profiles = client.get('/api/youth-profiles').get_json()['profiles']
        assert profiles[0]['membershipStatus'] == MembershipStatus.EXPIRED.value

        with app.app_context():
            stored = db.session.get(YouthProfile, created['id'])
            assert stored.membership_status == MembershipStatus.EXPIRED.value

    def test_membership_number_requires_id(self, app):
        with app.app_context():
            with pytest.raises(ValueError):
                YouthProfile().assign_membership_number()


class TestAuditTrail:
    def test_trail_lists_profile_events_in_order(self, client, profile_payload):
        created = _create(client, profile_payload)
        client.put(f"/api/youth-profiles/{created['id']}", json=profile_payload)

        response = client.get(f"/api/youth-profiles/{created['id']}/audit")
        assert response.status_code == 200
        trail = response.get_json()['audit']
        assert [entry['action'] for entry in trail] == [
            AuditAction.PROFILE_CREATED, AuditAction.PROFILE_UPDATED
        ]
        assert trail[0]['details'] == {'membership_number': created['membershipNumber']}
        assert all(entry['profile_id'] == created['id'] for entry in trail)

    def test_trail_for_missing_profile(self, client):
        response = client.get('/api/youth-profiles/999/audit')
        assert response.status_code == 404
