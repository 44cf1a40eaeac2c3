"""
Enumeration catalogs for the closed-value profile fields.

Country codes come from the CLDR territory names shipped with Babel, loaded
once for a fixed locale. Display labels depend on that locale; membership
does not. Catalogs are installed process-wide by the application factory
before any validation runs and are never mutated afterwards.
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from babel import Locale, UnknownLocaleError


DEFAULT_LOCALE = 'fi'
DEFAULT_COUNTRY_CODE = 'FI'

# CLDR territory codes that are not countries
NON_COUNTRY_CODES = frozenset([
    'EU', 'EZ', 'UN', 'QO', 'ZZ',
    'XA', 'XB',  # pseudo-locales
    'AC', 'CP', 'CQ', 'DG', 'EA', 'IC', 'TA',  # exceptional reservations
])


class CatalogError(Exception):
    """Raised when a catalog is missing or malformed."""
    pass


class Language(Enum):
    """Languages a youth profile can be managed in."""
    FINNISH = 'FINNISH'
    ENGLISH = 'ENGLISH'
    SWEDISH = 'SWEDISH'

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


DEFAULT_LANGUAGE = Language.FINNISH.value


class CountryCatalog:
    """Read-only mapping of ISO 3166-1 alpha-2 code to display label."""

    def __init__(self, names: Mapping[str, str], locale: str = DEFAULT_LOCALE):
        if not names:
            raise CatalogError('Country catalog is empty')
        for code in names:
            if not isinstance(code, str) or len(code) != 2 or not code.isalpha() or not code.isupper():
                raise CatalogError(f'Invalid country code in catalog: {code!r}')
        self._names = MappingProxyType(dict(names))
        self.locale = locale

    @classmethod
    def from_locale(cls, locale: str = DEFAULT_LOCALE) -> 'CountryCatalog':
        """Build the catalog from Babel's territory names for ``locale``."""
        try:
            territories = Locale.parse(locale).territories
        except (UnknownLocaleError, ValueError) as e:
            raise CatalogError(f'Cannot load country names for locale {locale!r}: {e}') from e

        names = {
            code: name for code, name in territories.items()
            if len(code) == 2 and code.isalpha() and code not in NON_COUNTRY_CODES
        }
        return cls(names, locale=locale)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self):
        return iter(self._names)

    def label(self, code: str) -> Optional[str]:
        return self._names.get(code)

    def options(self) -> List[Dict[str, str]]:
        """Select-input options sorted by label."""
        return [
            {'value': code, 'label': name}
            for code, name in sorted(self._names.items(), key=lambda item: item[1])
        ]


class Catalogs:
    """Bundle of every catalog the validation engine consults."""

    def __init__(self, countries: CountryCatalog, languages: Optional[List[str]] = None):
        if languages is None:
            languages = Language.values()
        if not languages:
            raise CatalogError('Language catalog is empty')
        self.countries = countries
        self.languages = frozenset(languages)

    @classmethod
    def from_locale(cls, locale: str = DEFAULT_LOCALE) -> 'Catalogs':
        return cls(CountryCatalog.from_locale(locale))

    def language_options(self) -> List[Dict[str, str]]:
        return [{'value': value, 'label': value} for value in Language.values() if value in self.languages]

    def to_dict(self) -> Dict[str, object]:
        return {
            'locale': self.countries.locale,
            'languages': self.language_options(),
            'countries': self.countries.options(),
        }


_catalogs: Optional[Catalogs] = None


def init_catalogs(catalogs: Catalogs) -> Catalogs:
    """Install the process-wide catalogs."""
    global _catalogs
    if not isinstance(catalogs, Catalogs):
        raise CatalogError('Catalogs must be a Catalogs instance')
    _catalogs = catalogs
    return catalogs


def get_catalogs() -> Catalogs:
    """Return the process-wide catalogs, failing if none were installed."""
    if _catalogs is None:
        raise CatalogError('Catalogs have not been initialised')
    return _catalogs
