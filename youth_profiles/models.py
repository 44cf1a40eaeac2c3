"""
Database models for the youth profile application.

Profiles are stored as their canonical record JSON plus a few denormalised
columns used for listing and searching.
"""

import json
import hashlib
from datetime import datetime, date
from enum import Enum as PyEnum

from youth_profiles import db
from youth_profiles.profile import ProfileRecord
from youth_profiles.utils import next_expiration_date, parse_date


class MembershipStatus(PyEnum):
    """Membership lifecycle states."""
    PENDING = 'pending'
    ACTIVE = 'active'
    EXPIRED = 'expired'


class YouthProfile(db.Model):
    """
    A registered youth profile and its membership.
    """
    __tablename__ = 'youth_profiles'

    id = db.Column(db.Integer, primary_key=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Search columns, refreshed from the record on every save
    first_name = db.Column(db.String(100), nullable=False, index=True)
    last_name = db.Column(db.String(100), nullable=False, index=True)
    email = db.Column(db.String(254), nullable=False)
    phone = db.Column(db.String(30), nullable=False)
    birth_date = db.Column(db.Date, nullable=True)

    # Membership
    membership_number = db.Column(db.String(20), unique=True, nullable=True)
    membership_status = db.Column(db.String(20), default=MembershipStatus.PENDING.value, nullable=False)
    expiration = db.Column(db.Date, nullable=True)

    payload_json = db.Column(db.Text, nullable=False)

    audit_logs = db.relationship('AuditLog', backref='profile', lazy='dynamic')

    def __repr__(self):
        return f'<YouthProfile {self.id} {self.membership_number} - {self.membership_status}>'

    def get_record(self) -> ProfileRecord:
        """Hydrate the stored record."""
        return ProfileRecord.from_dict(json.loads(self.payload_json))

    def set_record(self, record: ProfileRecord):
        """Store the record with stable key ordering and refresh search columns."""
        self.payload_json = json.dumps(record.to_dict(), indent=2, sort_keys=True)
        self.first_name = record.first_name.strip()
        self.last_name = record.last_name.strip()
        self.email = record.email.strip()
        self.phone = record.phone.strip()
        self.birth_date = parse_date(record.birth_date)
        self.updated_at = datetime.utcnow()

    def assign_membership_number(self):
        """Derive the membership number from the id; requires a flushed row."""
        if self.id is None:
            raise ValueError('Cannot assign a membership number before the profile is flushed')
        self.membership_number = f'YP-{self.id:06d}'

    def activate(self, today: date, month: int = 8, day: int = 31):
        """Start or renew the membership."""
        self.membership_status = MembershipStatus.ACTIVE.value
        self.expiration = next_expiration_date(today, month, day)

    def refresh_status(self, today: date) -> str:
        """Mark the membership expired once its expiration day has passed."""
        if (self.membership_status == MembershipStatus.ACTIVE.value
                and self.expiration is not None and self.expiration < today):
            self.membership_status = MembershipStatus.EXPIRED.value
        return self.membership_status

    def to_summary_dict(self):
        """Row shape for profile listings."""
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'phone': self.phone,
            'birthDate': self.birth_date.isoformat() if self.birth_date else None,
            'membershipNumber': self.membership_number,
            'membershipStatus': self.membership_status,
        }

    def to_dict(self):
        """Convert profile to dictionary for API responses."""
        return {
            'id': self.id,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
            'membershipNumber': self.membership_number,
            'membershipStatus': self.membership_status,
            'expiration': self.expiration.isoformat() if self.expiration else None,
            'record': self.get_record().to_dict(),
        }


class AuditLog(db.Model):
    """
    Immutable audit trail for all significant actions.

    This table is append-only. Records are never modified or deleted.
    """
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Who performed the action
    actor_type = db.Column(db.String(20), nullable=False)  # 'user', 'system'
    actor_id = db.Column(db.String(100), nullable=True)

    # What was done
    action = db.Column(db.String(50), nullable=False)
    action_category = db.Column(db.String(20), nullable=False)

    # What was affected
    profile_id = db.Column(db.Integer, db.ForeignKey('youth_profiles.id'), nullable=True)
    resource_type = db.Column(db.String(50), nullable=False)
    resource_id = db.Column(db.String(100), nullable=True)

    details_json = db.Column(db.Text, nullable=True)

    # Outcome
    success = db.Column(db.Boolean, nullable=False)
    error_message = db.Column(db.Text, nullable=True)

    # Request context
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)

    integrity_hash = db.Column(db.String(64), nullable=False)

    def __repr__(self):
        return f'<AuditLog {self.id} - {self.action} by {self.actor_type}>'

    def to_dict(self):
        """Convert audit log to dictionary."""
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'actor_type': self.actor_type,
            'actor_id': self.actor_id,
            'action': self.action,
            'action_category': self.action_category,
            'resource_type': self.resource_type,
            'resource_id': self.resource_id,
            'profile_id': self.profile_id,
            'details': json.loads(self.details_json) if self.details_json else None,
            'success': self.success,
            'error_message': self.error_message
        }

    def compute_integrity_hash(self) -> str:
        """Compute hash of this record's content for tamper detection."""
        content = f"{self.timestamp}{self.actor_type}{self.actor_id}{self.action}{self.resource_type}{self.resource_id}{self.details_json}"
        return hashlib.sha256(content.encode()).hexdigest()

    def verify_integrity(self) -> bool:
        """Verify this record has not been tampered with."""
        return self.integrity_hash == self.compute_integrity_hash()
