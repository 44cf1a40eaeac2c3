"""
Profile record model.

A ProfileRecord is the complete youth membership application: personal
details, one primary address, an ordered list of secondary addresses, the
photo usage choice and the approving guardian. Records travel over the wire
in camelCase; attributes here are snake_case.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Any, Optional

from youth_profiles.catalogs import DEFAULT_COUNTRY_CODE, DEFAULT_LANGUAGE


def _text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    return str(value)


def coerce_choice(value: Any) -> Optional[bool]:
    """Read a true/false choice; anything that is not an explicit choice is unset."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == 'true':
            return True
        if lowered == 'false':
            return False
    return None


@dataclass
class AddressEntry:
    """One postal address."""
    address: str = ''
    postal_code: str = ''
    city: str = ''
    country_code: str = DEFAULT_COUNTRY_CODE
    primary: bool = False

    @classmethod
    def new(cls, country_code: str = DEFAULT_COUNTRY_CODE, primary: bool = False) -> 'AddressEntry':
        return cls(country_code=country_code, primary=primary)

    @classmethod
    def from_dict(cls, data: Any, primary: bool = False) -> 'AddressEntry':
        if not isinstance(data, dict):
            return cls(primary=primary)
        return cls(
            address=_text(data.get('address')),
            postal_code=_text(data.get('postalCode')),
            city=_text(data.get('city')),
            country_code=_text(data.get('countryCode', DEFAULT_COUNTRY_CODE)),
            primary=primary
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.address,
            'postalCode': self.postal_code,
            'city': self.city,
            'countryCode': self.country_code,
            'primary': self.primary,
        }


@dataclass
class ProfileRecord:
    """Full submittable youth profile."""
    first_name: str = ''
    last_name: str = ''
    primary_address: AddressEntry = field(default_factory=lambda: AddressEntry.new(primary=True))
    addresses: List[AddressEntry] = field(default_factory=list)
    email: str = ''
    phone: str = ''
    birth_date: str = ''
    profile_language: str = DEFAULT_LANGUAGE
    language_at_home: str = DEFAULT_LANGUAGE
    school_name: str = ''
    school_class: str = ''
    photo_usage_approved: Optional[bool] = None
    approver_first_name: str = ''
    approver_last_name: str = ''
    approver_email: str = ''
    approver_phone: str = ''

    @classmethod
    def new(cls, country_code: str = DEFAULT_COUNTRY_CODE) -> 'ProfileRecord':
        """Blank record for a new registration."""
        return cls(primary_address=AddressEntry.new(country_code, primary=True))

    @classmethod
    def from_dict(cls, data: Any) -> 'ProfileRecord':
        """
        Build a record from its wire shape.

        Never raises: missing or malformed parts become empty values so that
        validation reports them.
        """
        if not isinstance(data, dict):
            return cls()

        raw_addresses = data.get('addresses')
        if not isinstance(raw_addresses, list):
            raw_addresses = []

        return cls(
            first_name=_text(data.get('firstName')),
            last_name=_text(data.get('lastName')),
            primary_address=AddressEntry.from_dict(data.get('primaryAddress'), primary=True),
            addresses=[AddressEntry.from_dict(entry) for entry in raw_addresses],
            email=_text(data.get('email')),
            phone=_text(data.get('phone')),
            birth_date=_text(data.get('birthDate')),
            profile_language=_text(data.get('profileLanguage', DEFAULT_LANGUAGE)),
            language_at_home=_text(data.get('languageAtHome', DEFAULT_LANGUAGE)),
            school_name=_text(data.get('schoolName')),
            school_class=_text(data.get('schoolClass')),
            photo_usage_approved=coerce_choice(data.get('photoUsageApproved')),
            approver_first_name=_text(data.get('approverFirstName')),
            approver_last_name=_text(data.get('approverLastName')),
            approver_email=_text(data.get('approverEmail')),
            approver_phone=_text(data.get('approverPhone'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'firstName': self.first_name,
            'lastName': self.last_name,
            'primaryAddress': self.primary_address.to_dict(),
            'addresses': [entry.to_dict() for entry in self.addresses],
            'email': self.email,
            'phone': self.phone,
            'birthDate': self.birth_date,
            'profileLanguage': self.profile_language,
            'languageAtHome': self.language_at_home,
            'schoolName': self.school_name,
            'schoolClass': self.school_class,
            'photoUsageApproved': self.photo_usage_approved,
            'approverFirstName': self.approver_first_name,
            'approverLastName': self.approver_last_name,
            'approverEmail': self.approver_email,
            'approverPhone': self.approver_phone,
        }

    def with_addresses(self, addresses: List[AddressEntry]) -> 'ProfileRecord':
        return replace(self, addresses=list(addresses))


# Address list editing. Both operations return a new list.

def append_address(addresses: List[AddressEntry],
                   country_code: str = DEFAULT_COUNTRY_CODE) -> List[AddressEntry]:
    """Add a blank secondary address at the end."""
    return list(addresses) + [AddressEntry.new(country_code)]


def remove_address(addresses: List[AddressEntry], index: int) -> List[AddressEntry]:
    """Remove the entry at ``index``; later entries shift down by one."""
    if index < 0 or index >= len(addresses):
        raise IndexError(f'Address index {index} out of range for {len(addresses)} addresses')
    return list(addresses[:index]) + list(addresses[index + 1:])
