"""
Validation engine for youth profile records.

Validation Rules Documentation:
===============================

1. PERSONAL DETAILS
   - firstName, lastName: required, max 100 chars, no HTML
   - email: required, local-part@domain.tld
   - phone: required, optional leading +, starts and ends with a digit,
     digits with spaces/hyphens/parens between, at least 6 digits
   - birthDate: required, YYYY-MM-DD, not in the future, not more than
     120 years ago (configurable)

2. ADDRESSES
   - primaryAddress and every entry of addresses follow the same rules
   - address, city: required, max 200 chars, no HTML
   - postalCode: required, must match the pattern of the entry's country
     (FI: five digits); countries without a known pattern use a permissive
     alphanumeric pattern
   - countryCode: required, must exist in the country catalog
   - addresses errors are index-aligned with the input list

3. LANGUAGES
   - profileLanguage, languageAtHome: required, member of the language catalog

4. EXTRA INFO
   - schoolName, schoolClass: optional, max 200 chars, no HTML
   - photoUsageApproved: must be an explicit true/false choice

5. APPROVER (guardian)
   - approverFirstName, approverLastName: required, max 100 chars, no HTML
   - approverEmail, approverPhone: required, same formats as above

Every field is checked on every call; each field reports at most one
message (its first failing rule). The engine never raises for bad data.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Union

from youth_profiles.catalogs import Catalogs, get_catalogs
from youth_profiles.error_report import AddressErrors, ErrorReport
from youth_profiles.profile import AddressEntry, ProfileRecord
from youth_profiles.utils import parse_date, years_before


# Constants for validation
MAX_NAME_LENGTH = 100
MAX_TEXT_LENGTH = 200
MAX_EMAIL_LENGTH = 254
MAX_AGE_YEARS = 120
MIN_PHONE_DIGITS = 6

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?[0-9][0-9 \-()]{4,18}[0-9]$')
HTML_TAG_PATTERN = re.compile(r'<[^>]+>')

POSTAL_CODE_PATTERNS = {
    'FI': re.compile(r'^\d{5}$'),
    'SE': re.compile(r'^\d{3} ?\d{2}$'),
    'NO': re.compile(r'^\d{4}$'),
    'DK': re.compile(r'^\d{4}$'),
    'EE': re.compile(r'^\d{5}$'),
    'DE': re.compile(r'^\d{5}$'),
}
FALLBACK_POSTAL_CODE_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9 \-]{1,9}$')

# Messages
REQUIRED = 'This field is required'
INVALID_EMAIL = 'Please enter a valid email address'
INVALID_PHONE = 'Please enter a valid phone number'
INVALID_POSTAL_CODE = 'Please enter a valid postal code'
INVALID_DATE = 'Please enter a valid date (YYYY-MM-DD)'
FUTURE_DATE = 'Birth date cannot be in the future'
UNKNOWN_COUNTRY = 'Unknown country code'
PHOTO_USAGE_UNSET = 'Please choose whether photo usage is approved'
HTML_NOT_ALLOWED = 'HTML tags are not allowed'


@dataclass(frozen=True)
class ValidationRules:
    """Format constants used by the engine."""
    email_pattern: re.Pattern = EMAIL_PATTERN
    phone_pattern: re.Pattern = PHONE_PATTERN
    postal_code_patterns: Mapping[str, re.Pattern] = field(
        default_factory=lambda: MappingProxyType(dict(POSTAL_CODE_PATTERNS))
    )
    fallback_postal_code_pattern: re.Pattern = FALLBACK_POSTAL_CODE_PATTERN
    max_age_years: int = MAX_AGE_YEARS
    max_name_length: int = MAX_NAME_LENGTH
    max_text_length: int = MAX_TEXT_LENGTH
    max_email_length: int = MAX_EMAIL_LENGTH

    def postal_code_pattern(self, country_code: str) -> re.Pattern:
        return self.postal_code_patterns.get(country_code, self.fallback_postal_code_pattern)


DEFAULT_RULES = ValidationRules()


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ''


def validate_string(value: Any, required: bool = True,
                    max_length: int = MAX_NAME_LENGTH) -> Optional[str]:
    """Validate a free text field."""
    if _is_blank(value):
        return REQUIRED if required else None

    str_value = str(value).strip()

    if len(str_value) > max_length:
        return f'Maximum {max_length} characters allowed'

    if HTML_TAG_PATTERN.search(str_value):
        return HTML_NOT_ALLOWED

    return None


def validate_email(value: Any, rules: ValidationRules = DEFAULT_RULES) -> Optional[str]:
    """Validate an email address."""
    if _is_blank(value):
        return REQUIRED

    str_value = str(value).strip()

    if len(str_value) > rules.max_email_length:
        return 'Email address is too long'

    if not rules.email_pattern.match(str_value):
        return INVALID_EMAIL

    return None


def validate_phone(value: Any, rules: ValidationRules = DEFAULT_RULES) -> Optional[str]:
    """Validate a phone number."""
    if _is_blank(value):
        return REQUIRED

    str_value = str(value).strip()

    if not rules.phone_pattern.match(str_value):
        return INVALID_PHONE

    if sum(ch.isdigit() for ch in str_value) < MIN_PHONE_DIGITS:
        return INVALID_PHONE

    return None


def validate_postal_code(value: Any, country_code: Any,
                         rules: ValidationRules = DEFAULT_RULES) -> Optional[str]:
    """Validate a postal code against the format of its country."""
    if _is_blank(value):
        return REQUIRED

    pattern = rules.postal_code_pattern(str(country_code or '').strip())
    if not pattern.match(str(value).strip()):
        return INVALID_POSTAL_CODE

    return None


def validate_birth_date(value: Any, today: date,
                        rules: ValidationRules = DEFAULT_RULES) -> Optional[str]:
    """Validate a birth date: parseable, not in the future, not implausibly early."""
    if _is_blank(value):
        return REQUIRED

    parsed = parse_date(value)
    if parsed is None:
        return INVALID_DATE

    if parsed > today:
        return FUTURE_DATE

    if parsed < years_before(today, rules.max_age_years):
        return f'Birth date cannot be more than {rules.max_age_years} years ago'

    return None


def validate_country_code(value: Any, catalogs: Catalogs) -> Optional[str]:
    """Validate membership in the country catalog."""
    if _is_blank(value):
        return REQUIRED

    if value not in catalogs.countries:
        return UNKNOWN_COUNTRY

    return None


def validate_enum(value: Any, allowed: List[str]) -> Optional[str]:
    """Validate an enum field with strict matching."""
    if _is_blank(value):
        return REQUIRED

    if value not in allowed:
        return f'Must be one of: {", ".join(allowed)}'

    return None


def validate_choice(value: Any) -> Optional[str]:
    """A true/false choice has no valid default: None is an error."""
    if not isinstance(value, bool):
        return PHOTO_USAGE_UNSET
    return None


def validate_address(entry: Any, catalogs: Catalogs,
                     rules: ValidationRules = DEFAULT_RULES) -> Optional[AddressErrors]:
    """Validate one address entry; None when the entry is valid."""
    if not isinstance(entry, AddressEntry):
        entry = AddressEntry.from_dict(entry)

    errors = AddressErrors(
        address=validate_string(entry.address, max_length=rules.max_text_length),
        postal_code=validate_postal_code(entry.postal_code, entry.country_code, rules),
        city=validate_string(entry.city, max_length=rules.max_text_length),
        country_code=validate_country_code(entry.country_code, catalogs)
    )
    return None if errors.is_empty() else errors


def validate_profile(record: Union[ProfileRecord, Any],
                     catalogs: Optional[Catalogs] = None,
                     rules: Optional[ValidationRules] = None,
                     today: Optional[date] = None) -> ErrorReport:
    """
    Main validation entry point. Validates the entire profile record.

    Args:
        record: A ProfileRecord, or its camelCase wire shape
        catalogs: Catalogs to check enumerated fields against
            (defaults to the process-wide catalogs)
        rules: Format constants (defaults to DEFAULT_RULES)
        today: Reference date for birth date checks (defaults to UTC today)

    Returns:
        ErrorReport mirroring the record; empty when the record is submittable
    """
    if catalogs is None:
        catalogs = get_catalogs()
    if rules is None:
        rules = DEFAULT_RULES
    if today is None:
        today = datetime.utcnow().date()
    if not isinstance(record, ProfileRecord):
        record = ProfileRecord.from_dict(record)

    languages = sorted(catalogs.languages)
    addresses = record.addresses if isinstance(record.addresses, list) else []

    return ErrorReport(
        first_name=validate_string(record.first_name, max_length=rules.max_name_length),
        last_name=validate_string(record.last_name, max_length=rules.max_name_length),
        email=validate_email(record.email, rules),
        phone=validate_phone(record.phone, rules),
        birth_date=validate_birth_date(record.birth_date, today, rules),
        profile_language=validate_enum(record.profile_language, languages),
        language_at_home=validate_enum(record.language_at_home, languages),
        school_name=validate_string(record.school_name, required=False,
                                    max_length=rules.max_text_length),
        school_class=validate_string(record.school_class, required=False,
                                     max_length=rules.max_text_length),
        photo_usage_approved=validate_choice(record.photo_usage_approved),
        approver_first_name=validate_string(record.approver_first_name,
                                            max_length=rules.max_name_length),
        approver_last_name=validate_string(record.approver_last_name,
                                           max_length=rules.max_name_length),
        approver_email=validate_email(record.approver_email, rules),
        approver_phone=validate_phone(record.approver_phone, rules),
        primary_address=validate_address(record.primary_address, catalogs, rules),
        addresses=[validate_address(entry, catalogs, rules) for entry in addresses]
    )


def is_submittable(record: Union[ProfileRecord, Any], **kwargs) -> bool:
    """Shortcut for callers that only need the submission gate."""
    return validate_profile(record, **kwargs).is_empty()
