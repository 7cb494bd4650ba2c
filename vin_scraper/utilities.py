"""
Static support functions and global variables for turning scraped listing text into vehicle fields.

"""
import re
from collections import namedtuple
from urllib.parse import urlparse

from itemadapter import ItemAdapter

from vin_scraper.vin import is_placeholder_vin

STANDARD_FIELDS = ['vin', 'year', 'make', 'model', 'trim', 'price', 'mileage', 'transmission', 'fuel_type',
                   'exterior_color', 'interior_color', 'features', 'images', 'description', 'dealer_name',
                   'dealer_location', 'source_url', 'source_site', 'status', 'scraped_at']

SOURCE_SITES = {
    'autotrader': 'AutoTrader',
    'cars': 'Cars.com',
    'cargurus': 'CarGurus',
    'dealer': 'Dealer.com',
    'carmax': 'CarMax',
}

# hostname fragment -> site key, checked in order
SITE_HOSTS = (
    ('autotrader', 'autotrader'),
    ('cars.com', 'cars'),
    ('cargurus', 'cargurus'),
    ('dealer.com', 'dealer'),
    ('carmax', 'carmax'),
)

UNKNOWN_SITE = 'Unknown'

MAX_IMAGES = 5

TitleParts = namedtuple('TitleParts', ['year', 'make', 'model', 'trim'])

YEAR_FIRST_TITLE = re.compile(r'(\d{4})\s+([A-Za-z]+)\s+([A-Za-z0-9\-]+)(?:\s+(.+))?')
YEAR_THIRD_TITLE = re.compile(r'([A-Za-z]+)\s+([A-Za-z0-9\-]+)\s+(\d{4})(?:\s+(.+))?')
ANY_YEAR = re.compile(r'\b(?:19|20)\d{2}\b')
HTML_TAG = re.compile(r'<[^>]*>')
WHITESPACE = re.compile(r'\s+')


def remove_html_tags(text: str):
    """
    Creates a copy of a string with any html tags removed.

    :param text: a string containing html tags
    :return: a new string with characters from <i>text</i> that weren't contained in html tags
    """
    return HTML_TAG.sub('', text).strip()


def clean_text(text):
    """
    Strips tags and collapses whitespace. Returns None for missing or blank text so that optional fields stay empty
    instead of holding ''.
    """
    if text is None:
        return None
    cleaned = WHITESPACE.sub(' ', remove_html_tags(str(text))).strip()
    return cleaned or None


def clean_text_list(values):
    if not values:
        return []
    cleaned = (clean_text(value) for value in values)
    return [value for value in cleaned if value]


def filter_image_urls(urls):
    """
    Keeps absolute http(s) image URLs, in order, up to MAX_IMAGES.
    """
    kept = []
    for url in urls or []:
        if url and str(url).strip().lower().startswith(('http://', 'https://')):
            kept.append(str(url).strip())
        if len(kept) == MAX_IMAGES:
            break
    return kept


def detect_site(url_or_host: str):
    """
    Works out which supported site a page belongs to.

    :param url_or_host: a full URL or a bare hostname
    :return: a key of SOURCE_SITES, or 'unknown'
    """
    if not url_or_host:
        return 'unknown'
    url_or_host = str(url_or_host)
    if '//' in url_or_host:
        try:
            host = urlparse(url_or_host).hostname
        except ValueError:
            return 'unknown'
    else:
        host = url_or_host
    host = (host or '').lower()
    for fragment, site in SITE_HOSTS:
        if fragment in host:
            return site
    return 'unknown'


def site_display_name(site: str):
    return SOURCE_SITES.get(site, UNKNOWN_SITE)


def parse_price(text):
    """
    Drops everything except digits and dots, so "$22,995.00" becomes "22995.00". Text with no digits at all (e.g.
    "Call for price") becomes "0", which fails validation later on.
    """
    if not text:
        return '0'
    price = re.sub(r'[^\d.]', '', str(text))
    return price or '0'


def parse_mileage(text):
    """
    Reads the first number in ``text``, ignoring thousands separators. A 'k' anywhere in the text scales numbers
    under 1000 up, so "45k miles" is 45000.
    """
    if not text:
        return 0
    text = str(text)
    match = re.search(r'[\d,]+', text)
    if match is None:
        return 0
    digits = match.group(0).replace(',', '')
    if not digits:
        return 0
    mileage = int(digits)
    if 'k' in text.lower() and mileage < 1000:
        mileage *= 1000
    return mileage


def parse_vehicle_title(title):
    """
    Pulls year, make, model and trim out of a listing title.

    Tries "YEAR MAKE MODEL [TRIM...]" ("2022 Toyota Camry LE") and then "MAKE MODEL YEAR [TRIM...]" ("Toyota Camry
    2022 LE"). If neither fits, only a year is recovered and make/model are left as None; such a record gets rejected
    rather than guessed at.

    :param title: the freeform title text
    :return: a TitleParts tuple
    """
    if not title:
        return TitleParts(None, None, None, None)
    title = clean_text(title) or ''

    match = YEAR_FIRST_TITLE.search(title)
    if match:
        year, make, model, trim = match.groups()
        return TitleParts(int(year), make, model, clean_text(trim))

    match = YEAR_THIRD_TITLE.search(title)
    if match:
        make, model, year, trim = match.groups()
        return TitleParts(int(year), make, model, clean_text(trim))

    match = ANY_YEAR.search(title)
    year = int(match.group(0)) if match else None
    return TitleParts(year, None, None, None)


def are_duplicates(v1, v2):
    """
    Two vehicles are duplicates only when they carry the same real VIN. Placeholder VINs never match anything.
    """
    vin1 = ItemAdapter(v1).get('vin')
    vin2 = ItemAdapter(v2).get('vin')
    if not vin1 or not vin2 or is_placeholder_vin(vin1) or is_placeholder_vin(vin2):
        return False
    return vin1.strip().upper() == vin2.strip().upper()
