"""
Audit logging module for immutable audit trail.

All significant actions are logged with integrity verification.
This module is append-only - records are never modified or deleted.
Audit entries never contain personal data: validation failures are recorded
as field paths only.
"""

import json
from datetime import datetime
from typing import Dict, Any, Optional
from flask import request, current_app, has_request_context

from youth_profiles import db
from youth_profiles.error_report import ErrorReport
from youth_profiles.models import AuditLog


class AuditAction:
    """Constants for audit actions."""
    PROFILE_CREATED = 'profile_created'
    PROFILE_UPDATED = 'profile_updated'
    PROFILE_RENEWED = 'profile_renewed'
    PROFILE_VIEWED = 'profile_viewed'

    VALIDATION_PASSED = 'validation_passed'
    VALIDATION_FAILED = 'validation_failed'

    ERROR_OCCURRED = 'error_occurred'


class AuditCategory:
    """Constants for audit action categories."""
    CREATE = 'create'
    READ = 'read'
    UPDATE = 'update'
    SYSTEM = 'system'


def log_action(
    action: str,
    action_category: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    profile_id: Optional[int] = None,
    actor_type: str = 'system',
    actor_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    success: bool = True,
    error_message: Optional[str] = None
) -> Optional[AuditLog]:
    """
    Log an action to the audit trail.

    Args:
        action: The action performed (use AuditAction constants)
        action_category: Category of action (use AuditCategory constants)
        resource_type: Type of resource affected
        resource_id: Identifier of the resource
        profile_id: Associated profile ID if applicable
        actor_type: Type of actor ('user', 'system')
        actor_id: Identifier of the actor (IP address or None)
        details: Additional structured details
        success: Whether the action succeeded
        error_message: Error message if action failed

    Returns:
        The created AuditLog record, or None if it could not be stored
    """
    try:
        ip_address = None
        user_agent = None

        if has_request_context():
            ip_address = request.remote_addr
            user_agent = request.headers.get('User-Agent')
            if actor_type == 'user' and not actor_id:
                actor_id = ip_address

        audit_log = AuditLog(
            timestamp=datetime.utcnow(),
            action=action,
            action_category=action_category,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id else None,
            profile_id=profile_id,
            actor_type=actor_type,
            actor_id=actor_id,
            details_json=json.dumps(details, sort_keys=True) if details else None,
            success=success,
            error_message=error_message,
            ip_address=ip_address,
            user_agent=user_agent
        )

        audit_log.integrity_hash = audit_log.compute_integrity_hash()

        db.session.add(audit_log)
        db.session.commit()

        return audit_log

    except Exception as e:
        # Audit logging must not break the request
        db.session.rollback()
        current_app.logger.error(f'Failed to create audit log: {str(e)}')
        return None


def log_validation_result(report: ErrorReport, profile_id: Optional[int] = None) -> Optional[AuditLog]:
    """Log a validation outcome with failing field paths only."""
    passed = report.is_empty()
    details = None
    if not passed:
        details = {
            'error_count': report.error_count(),
            'fields': [path for path, _ in report.flatten()],
        }
    return log_action(
        action=AuditAction.VALIDATION_PASSED if passed else AuditAction.VALIDATION_FAILED,
        action_category=AuditCategory.SYSTEM,
        resource_type='youth_profile',
        resource_id=str(profile_id) if profile_id else None,
        profile_id=profile_id,
        actor_type='user',
        details=details,
        success=passed
    )


def log_profile_created(profile_id: int, membership_number: str) -> Optional[AuditLog]:
    """Log profile creation."""
    return log_action(
        action=AuditAction.PROFILE_CREATED,
        action_category=AuditCategory.CREATE,
        resource_type='youth_profile',
        resource_id=str(profile_id),
        profile_id=profile_id,
        actor_type='user',
        details={'membership_number': membership_number}
    )


def log_profile_updated(profile_id: int) -> Optional[AuditLog]:
    """Log profile update."""
    return log_action(
        action=AuditAction.PROFILE_UPDATED,
        action_category=AuditCategory.UPDATE,
        resource_type='youth_profile',
        resource_id=str(profile_id),
        profile_id=profile_id,
        actor_type='user'
    )


def log_profile_renewed(profile_id: int, expiration: str) -> Optional[AuditLog]:
    """Log membership renewal."""
    return log_action(
        action=AuditAction.PROFILE_RENEWED,
        action_category=AuditCategory.UPDATE,
        resource_type='youth_profile',
        resource_id=str(profile_id),
        profile_id=profile_id,
        actor_type='user',
        details={'expiration': expiration}
    )


def log_profile_viewed(profile_id: int) -> Optional[AuditLog]:
    """Log a details view."""
    return log_action(
        action=AuditAction.PROFILE_VIEWED,
        action_category=AuditCategory.READ,
        resource_type='youth_profile',
        resource_id=str(profile_id),
        profile_id=profile_id,
        actor_type='user'
    )


def log_error(resource_type: str, error_message: str, profile_id: Optional[int] = None) -> Optional[AuditLog]:
    """Log an unexpected failure."""
    return log_action(
        action=AuditAction.ERROR_OCCURRED,
        action_category=AuditCategory.SYSTEM,
        resource_type=resource_type,
        profile_id=profile_id,
        success=False,
        error_message=error_message
    )


def verify_audit_integrity() -> tuple:
    """
    Verify integrity of all audit log records.

    Returns:
        Tuple of (valid_count, invalid_count, invalid_ids)
    """
    logs = AuditLog.query.all()
    valid_count = 0
    invalid_count = 0
    invalid_ids = []

    for log in logs:
        if log.verify_integrity():
            valid_count += 1
        else:
            invalid_count += 1
            invalid_ids.append(log.id)

    return valid_count, invalid_count, invalid_ids


def get_audit_trail_for_profile(profile_id: int) -> list:
    """
    Get complete audit trail for a profile.

    Args:
        profile_id: The profile ID

    Returns:
        List of audit log dictionaries
    """
    logs = AuditLog.query.filter_by(profile_id=profile_id) \
                         .order_by(AuditLog.timestamp.asc(), AuditLog.id.asc()) \
                         .all()
    return [log.to_dict() for log in logs]
