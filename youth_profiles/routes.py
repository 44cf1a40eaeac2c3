"""
Flask routes for the youth profile API.

Every write goes through the validation engine first; nothing is stored
unless the error report is empty.
"""

from datetime import datetime

from flask import Blueprint, request, jsonify, current_app, abort

from youth_profiles import db
from youth_profiles.audit_logger import (
    log_validation_result, log_profile_created, log_profile_updated,
    log_profile_renewed, log_profile_viewed, log_error, get_audit_trail_for_profile
)
from youth_profiles.models import YouthProfile
from youth_profiles.profile import ProfileRecord
from youth_profiles.security import (
    csrf, sanitize_payload, rate_limit_read, rate_limit_validate, rate_limit_write
)
from youth_profiles.utils import (
    format_address, format_date, format_profile_name, format_school
)
from youth_profiles.validation import validate_profile


api_bp = Blueprint('api', __name__, url_prefix='/api')

# The JSON API is used by token-authenticated admin clients, not HTML forms
csrf.exempt(api_bp)


def _today():
    return datetime.utcnow().date()


def _catalogs():
    return current_app.extensions['youth_profiles.catalogs']


def _rules():
    return current_app.extensions['youth_profiles.rules']


def _read_record():
    """Parse the request body into a ProfileRecord, or None if it is not a JSON object."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None
    return ProfileRecord.from_dict(sanitize_payload(payload))


def _missing_payload():
    return jsonify({'ok': False, 'error': 'No JSON payload provided'}), 400


def _rejected(report, profile_id=None):
    log_validation_result(report, profile_id=profile_id)
    current_app.logger.warning(
        f'Profile rejected with {report.error_count()} validation errors'
    )
    return jsonify({'ok': False, 'errors': report.to_dict()}), 422


def _refresh_statuses(profiles):
    """Mark lapsed memberships expired and store the change."""
    today = _today()
    changed = False
    for profile in profiles:
        before = profile.membership_status
        if profile.refresh_status(today) != before:
            changed = True
    if changed:
        db.session.commit()


def _activate(profile):
    profile.activate(
        _today(),
        month=current_app.config['MEMBERSHIP_EXPIRATION_MONTH'],
        day=current_app.config['MEMBERSHIP_EXPIRATION_DAY']
    )


def _details(profile):
    """Details view: record plus display strings."""
    record = profile.get_record()
    _refresh_statuses([profile])
    data = profile.to_dict()
    data['display'] = {
        'name': format_profile_name(record),
        'address': format_address(record.primary_address),
        'school': format_school(record),
        'birthDate': format_date(record.birth_date),
        'approverName': format_profile_name(record, 'approver'),
        'country': _catalogs().countries.label(record.primary_address.country_code),
    }
    return data


def _get_profile_or_404(profile_id):
    profile = db.session.get(YouthProfile, profile_id)
    if profile is None:
        abort(404)
    return profile


@api_bp.route('/catalogs', methods=['GET'])
@rate_limit_read()
def api_catalogs():
    """Language and country options for select inputs."""
    return jsonify({'ok': True, **_catalogs().to_dict()}), 200


@api_bp.route('/youth-profiles/new', methods=['GET'])
@rate_limit_read()
def api_new_profile():
    """Blank record for a new registration."""
    record = ProfileRecord.new(current_app.config['ADMINISTERING_COUNTRY'])
    return jsonify({'ok': True, 'record': record.to_dict()}), 200


@api_bp.route('/youth-profiles/validate', methods=['POST'])
@rate_limit_validate()
def api_validate():
    """
    Validate a profile record without saving it.

    Returns:
        JSON response with the mirrored error report
    """
    record = _read_record()
    if record is None:
        return _missing_payload()

    report = validate_profile(record, catalogs=_catalogs(), rules=_rules(), today=_today())
    if not report.is_empty():
        return _rejected(report)

    return jsonify({'ok': True, 'errors': report.to_dict()}), 200


@api_bp.route('/youth-profiles', methods=['POST'])
@rate_limit_write()
def api_create_profile():
    """Create a profile and start its membership."""
    record = _read_record()
    if record is None:
        return _missing_payload()

    report = validate_profile(record, catalogs=_catalogs(), rules=_rules(), today=_today())
    if not report.is_empty():
        return _rejected(report)

    try:
        profile = YouthProfile()
        profile.set_record(record)
        _activate(profile)
        db.session.add(profile)
        db.session.flush()
        profile.assign_membership_number()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Profile creation error: {str(e)}')
        log_error('youth_profile', str(e))
        return jsonify({'ok': False, 'error': 'Internal server error'}), 500

    log_profile_created(profile.id, profile.membership_number)
    current_app.logger.info(f'Created youth profile {profile.id} ({profile.membership_number})')

    return jsonify({'ok': True, 'profile': _details(profile)}), 201


@api_bp.route('/youth-profiles', methods=['GET'])
@rate_limit_read()
def api_list_profiles():
    """List profiles, optionally filtered by name prefix."""
    query = YouthProfile.query
    first_name = request.args.get('firstName', '').strip()
    last_name = request.args.get('lastName', '').strip()

    if first_name:
        query = query.filter(YouthProfile.first_name.ilike(f'{first_name}%'))
    if last_name:
        query = query.filter(YouthProfile.last_name.ilike(f'{last_name}%'))

    profiles = query.order_by(YouthProfile.last_name.asc(), YouthProfile.first_name.asc()).all()
    _refresh_statuses(profiles)

    return jsonify({
        'ok': True,
        'profiles': [profile.to_summary_dict() for profile in profiles]
    }), 200


@api_bp.route('/youth-profiles/<int:profile_id>', methods=['GET'])
@rate_limit_read()
def api_get_profile(profile_id):
    """Profile details."""
    profile = _get_profile_or_404(profile_id)
    log_profile_viewed(profile.id)
    return jsonify({'ok': True, 'profile': _details(profile)}), 200


@api_bp.route('/youth-profiles/<int:profile_id>/audit', methods=['GET'])
@rate_limit_read()
def api_profile_audit(profile_id):
    """Audit trail of a profile, oldest first."""
    profile = _get_profile_or_404(profile_id)
    return jsonify({'ok': True, 'audit': get_audit_trail_for_profile(profile.id)}), 200


def _save_existing(profile_id, renew):
    profile = _get_profile_or_404(profile_id)

    record = _read_record()
    if record is None:
        return _missing_payload()

    report = validate_profile(record, catalogs=_catalogs(), rules=_rules(), today=_today())
    if not report.is_empty():
        return _rejected(report, profile_id=profile.id)

    try:
        profile.set_record(record)
        if renew:
            _activate(profile)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Profile update error: {str(e)}')
        log_error('youth_profile', str(e), profile_id=profile_id)
        return jsonify({'ok': False, 'error': 'Internal server error'}), 500

    if renew:
        log_profile_renewed(profile.id, profile.expiration.isoformat())
        current_app.logger.info(f'Renewed youth profile {profile.id} until {profile.expiration}')
    else:
        log_profile_updated(profile.id)
        current_app.logger.info(f'Updated youth profile {profile.id}')

    return jsonify({'ok': True, 'profile': _details(profile)}), 200


@api_bp.route('/youth-profiles/<int:profile_id>', methods=['PUT'])
@rate_limit_write()
def api_update_profile(profile_id):
    """Update a profile's details."""
    return _save_existing(profile_id, renew=False)


@api_bp.route('/youth-profiles/<int:profile_id>/renew', methods=['POST'])
@rate_limit_write()
def api_renew_profile(profile_id):
    """Update a profile and renew its membership."""
    return _save_existing(profile_id, renew=True)
