"""
VIN validation and decoding, following the ISO 3779 check digit scheme.

Every public function here is total: malformed input gives ``False`` or ``None`` rather than an exception, so a
whole page of scraped listings can be checked without any per-record error handling.
"""

import random
import re
import string
import time
from collections import namedtuple
from datetime import date

VIN_LENGTH = 17
CHECK_DIGIT_INDEX = 8
MODEL_YEAR_INDEX = 9
YEAR_CYCLE = 30

PLACEHOLDER_PREFIX = 'UNKNOWN_'

TRANSLITERATION = {
    'A': 1, 'B': 2, 'C': 3, 'D': 4, 'E': 5, 'F': 6, 'G': 7, 'H': 8,
    'J': 1, 'K': 2, 'L': 3, 'M': 4, 'N': 5, 'P': 7, 'R': 9, 'S': 2,
    'T': 3, 'U': 4, 'V': 5, 'W': 6, 'X': 7, 'Y': 8, 'Z': 9,
}

WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)

MODEL_YEARS = {
    'A': 1980, 'B': 1981, 'C': 1982, 'D': 1983, 'E': 1984, 'F': 1985,
    'G': 1986, 'H': 1987, 'J': 1988, 'K': 1989, 'L': 1990, 'M': 1991,
    'N': 1992, 'P': 1993, 'R': 1994, 'S': 1995, 'T': 1996, 'V': 1997,
    'W': 1998, 'X': 1999, 'Y': 2000, '1': 2001, '2': 2002, '3': 2003,
    '4': 2004, '5': 2005, '6': 2006, '7': 2007, '8': 2008, '9': 2009,
}

VIN_PATTERN = re.compile(r'^[A-HJ-NPR-Z0-9]{17}$')
VIN_SEARCH_PATTERN = re.compile(r'[A-HJ-NPR-Z0-9]{17}')
FORBIDDEN_LETTERS = re.compile('[IOQ]')

DecodedVin = namedtuple('DecodedVin', ['wmi', 'vds', 'vis', 'year', 'check_digit'])


def normalize_vin(candidate: str):
    """
    Strips surrounding whitespace from ``candidate`` and uppercases it.
    """
    return candidate.strip().upper()


def check_digit(vin: str):
    """
    Computes the check digit for a normalized 17 character VIN. The character already sitting in the check digit
    slot carries a weight of 0, so it does not matter what it is.

    :param vin: a normalized VIN
    :return: 'X' if the weighted sum mod 11 is 10, otherwise that remainder as a single digit
    :raises ValueError: if a character has no numeric value
    """
    if len(vin) != len(WEIGHTS):
        raise ValueError(f'expected {len(WEIGHTS)} characters, got {len(vin)}')
    total = 0
    for char, weight in zip(vin, WEIGHTS):
        if char.isdigit():
            value = int(char)
        elif char in TRANSLITERATION:
            value = TRANSLITERATION[char]
        else:
            raise ValueError(f'no transliteration for {char!r}')
        total += value * weight
    remainder = total % 11
    return 'X' if remainder == 10 else str(remainder)


def is_valid_vin(candidate):
    """
    Checks the length, the alphabet (no I, O or Q) and the check digit of ``candidate``. Never raises.
    """
    if not isinstance(candidate, str):
        return False
    vin = normalize_vin(candidate)
    if len(vin) != VIN_LENGTH:
        return False
    if FORBIDDEN_LETTERS.search(vin):
        return False
    if not VIN_PATTERN.match(vin):
        return False
    try:
        expected = check_digit(vin)
    except ValueError:
        return False
    return vin[CHECK_DIGIT_INDEX] == expected


def decode_model_year(char: str, current_year: int = None):
    """
    Maps the 10th VIN character to a model year.

    The character only identifies a year within a 30 year cycle. The table holds the 1980-2009 cycle; a base year that
    lands in the future is pulled back by exactly one cycle. Anything older than that is indistinguishable from the
    newer cycle and is not corrected.

    :return: the model year, or None if ``char`` is not a model year code (0, U and Z are never used)
    """
    base_year = MODEL_YEARS.get(char)
    if base_year is None:
        return None
    if current_year is None:
        current_year = date.today().year
    if base_year <= current_year:
        return base_year
    return base_year - YEAR_CYCLE


def parse_vin(candidate, current_year: int = None):
    """
    Splits a valid VIN into its sections.

    :return: a DecodedVin, or None if ``candidate`` fails is_valid_vin
    """
    if not is_valid_vin(candidate):
        return None
    vin = normalize_vin(candidate)
    return DecodedVin(wmi=vin[0:3],
                      vds=vin[3:9],
                      vis=vin[9:17],
                      year=decode_model_year(vin[MODEL_YEAR_INDEX], current_year),
                      check_digit=vin[CHECK_DIGIT_INDEX])


def find_vin(text):
    """
    Scans free text (usually the whole text of a listing card) for the first run of 17 VIN characters that also
    passes the check digit test.
    """
    if not text:
        return None
    for match in VIN_SEARCH_PATTERN.findall(text.upper()):
        if is_valid_vin(match):
            return match
    return None


def make_placeholder_vin():
    """
    Synthesizes a stand-in for listings that don't show a VIN. Placeholders never pass is_valid_vin and are never
    considered duplicates of each other.
    """
    suffix = ''.join(random.choices(string.digits + string.ascii_lowercase, k=9))
    return f'{PLACEHOLDER_PREFIX}{int(time.time() * 1000)}_{suffix}'


def is_placeholder_vin(value):
    return isinstance(value, str) and value.startswith(PLACEHOLDER_PREFIX)
