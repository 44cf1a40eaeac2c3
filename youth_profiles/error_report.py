"""
Error report model.

An ErrorReport mirrors a ProfileRecord: every scalar field holds an optional
message, the primary address holds optional AddressErrors, and the secondary
address list holds one optional AddressErrors per entry, index-aligned with
the record that was validated.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Any, Optional, Tuple


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


@dataclass
class AddressErrors:
    """Messages for one address entry."""
    address: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    country_code: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> Dict[str, str]:
        return {
            _camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def flatten(self, prefix: str) -> List[Tuple[str, str]]:
        return [(f'{prefix}.{key}', message) for key, message in self.to_dict().items()]


# Scalar fields in record order; primary_address and addresses are handled apart
SCALAR_FIELDS = (
    'first_name',
    'last_name',
    'email',
    'phone',
    'birth_date',
    'profile_language',
    'language_at_home',
    'school_name',
    'school_class',
    'photo_usage_approved',
    'approver_first_name',
    'approver_last_name',
    'approver_email',
    'approver_phone',
)


@dataclass
class ErrorReport:
    """Validation messages for a whole profile record."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    profile_language: Optional[str] = None
    language_at_home: Optional[str] = None
    school_name: Optional[str] = None
    school_class: Optional[str] = None
    photo_usage_approved: Optional[str] = None
    approver_first_name: Optional[str] = None
    approver_last_name: Optional[str] = None
    approver_email: Optional[str] = None
    approver_phone: Optional[str] = None
    primary_address: Optional[AddressErrors] = None
    addresses: List[Optional[AddressErrors]] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when the record is ready for submission."""
        if any(getattr(self, name) is not None for name in SCALAR_FIELDS):
            return False
        if self.primary_address is not None and not self.primary_address.is_empty():
            return False
        return all(entry is None or entry.is_empty() for entry in self.addresses)

    def flatten(self) -> List[Tuple[str, str]]:
        """(path, message) pairs, e.g. ('addresses[1].postalCode', '...')."""
        pairs = []
        for name in SCALAR_FIELDS:
            message = getattr(self, name)
            if message is not None:
                pairs.append((_camel(name), message))
        if self.primary_address is not None:
            pairs.extend(self.primary_address.flatten('primaryAddress'))
        for i, entry in enumerate(self.addresses):
            if entry is not None:
                pairs.extend(entry.flatten(f'addresses[{i}]'))
        return pairs

    def error_count(self) -> int:
        return len(self.flatten())

    def to_dict(self) -> Dict[str, Any]:
        result = {
            _camel(name): getattr(self, name)
            for name in SCALAR_FIELDS
            if getattr(self, name) is not None
        }
        if self.primary_address is not None and not self.primary_address.is_empty():
            result['primaryAddress'] = self.primary_address.to_dict()
        result['addresses'] = [
            entry.to_dict() if entry is not None and not entry.is_empty() else None
            for entry in self.addresses
        ]
        return result
