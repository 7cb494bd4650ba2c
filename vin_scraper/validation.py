"""
Rule table for deciding whether a scraped vehicle record may be kept.

Every rule is checked on every record; the result lists all of the violations, not just the first one, so that a
rejected listing can be diagnosed from a single log line.
"""
import logging
from collections import namedtuple
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from urllib.parse import urlparse

from itemadapter import ItemAdapter

from vin_scraper.vin import is_valid_vin

MIN_YEAR = 1900
FUTURE_YEARS_ALLOWED = 2

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    INVALID_VIN = 'InvalidVin'
    MISSING_MAKE = 'MissingMake'
    MISSING_MODEL = 'MissingModel'
    INVALID_YEAR = 'InvalidYear'
    INVALID_PRICE = 'InvalidPrice'
    INVALID_MILEAGE = 'InvalidMileage'
    MISSING_SOURCE_URL = 'MissingSourceUrl'
    MISSING_SOURCE_SITE = 'MissingSourceSite'


ValidationResult = namedtuple('ValidationResult', ['valid', 'errors'])


def _is_blank(value):
    return value is None or not str(value).strip()


def _is_int(value):
    # bool is a subclass of int, but True is not a year
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_year(year, current_year: int = None):
    if not _is_int(year):
        return False
    if current_year is None:
        current_year = date.today().year
    return MIN_YEAR <= year <= current_year + FUTURE_YEARS_ALLOWED


def is_valid_price(price):
    """
    True if ``price`` reads as a finite decimal greater than zero.
    """
    if price is None or isinstance(price, bool):
        return False
    try:
        amount = Decimal(str(price).strip())
    except InvalidOperation:
        return False
    return amount.is_finite() and amount > 0


def is_valid_mileage(mileage):
    return _is_int(mileage) and mileage >= 0


def is_valid_url(url):
    if _is_blank(url):
        return False
    try:
        parsed = urlparse(str(url).strip())
    except ValueError:
        # unbalanced brackets in the host
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def validate_vehicle_record(candidate, current_year: int = None):
    """
    Checks a vehicle record against every rule.

    :param candidate: a Vehicle item or a dict with the same keys; missing keys count as absent fields
    :param current_year: pins "now" for the year bound, defaults to today's year
    :return: a ValidationResult whose errors are ErrorKind members in rule order
    """
    adapter = ItemAdapter(candidate)
    errors = []
    if not is_valid_vin(adapter.get('vin')):
        errors.append(ErrorKind.INVALID_VIN)
    if _is_blank(adapter.get('make')):
        errors.append(ErrorKind.MISSING_MAKE)
    if _is_blank(adapter.get('model')):
        errors.append(ErrorKind.MISSING_MODEL)
    if not is_valid_year(adapter.get('year'), current_year):
        errors.append(ErrorKind.INVALID_YEAR)
    if not is_valid_price(adapter.get('price')):
        errors.append(ErrorKind.INVALID_PRICE)
    if not is_valid_mileage(adapter.get('mileage')):
        errors.append(ErrorKind.INVALID_MILEAGE)
    if not is_valid_url(adapter.get('source_url')):
        errors.append(ErrorKind.MISSING_SOURCE_URL)
    if _is_blank(adapter.get('source_site')):
        errors.append(ErrorKind.MISSING_SOURCE_SITE)
    return ValidationResult(valid=not errors, errors=errors)


def describe_errors(errors):
    return ', '.join(error.value for error in errors)


def filter_valid(candidates, log: logging.Logger = None, current_year: int = None):
    """
    Keeps the candidates that pass validate_vehicle_record, in their original order. Each rejected candidate is
    logged along with everything that was wrong with it; nothing is patched up.

    :param candidates: an iterable of Vehicle items or dicts
    :param log: where rejections are reported, defaults to this module's logger
    :return: a list of the valid candidates
    """
    log = log or logger
    kept = []
    for candidate in candidates:
        result = validate_vehicle_record(candidate, current_year)
        if result.valid:
            kept.append(candidate)
        else:
            log.warning('Rejected vehicle %s: %s', ItemAdapter(candidate).get('vin'), describe_errors(result.errors))
    return kept
