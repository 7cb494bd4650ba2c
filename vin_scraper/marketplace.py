"""
Builds marketplace posting text and pre-filled listing URLs for scraped vehicles.

Nothing here talks to Facebook; it only produces strings for a person to paste or open.
"""
from collections import namedtuple
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from urllib.parse import urlencode

from itemadapter import ItemAdapter

MARKETPLACE_CREATE_URL = 'https://www.facebook.com/marketplace/create/item'

MAX_FEATURES = 8
MAX_HASHTAGS = 15
MAX_EMOJIS = 8
LOW_MILEAGE = 30000
RECENT_MODEL_YEARS = 3
AFFORDABLE_PRICE = 15000
LUXURY_PRICE = 50000
GROUP_COOLDOWN = timedelta(hours=24)

GENERAL_HASHTAGS = ['#UsedCars', '#CarForSale', '#AutoSales', '#QualityCars']

# feature keyword -> emoji
FEATURE_EMOJIS = (
    ('leather', '🏆'),
    ('sunroof', '☀️'),
    ('navigation', '🗺️'),
    ('bluetooth', '📱'),
)

PostContent = namedtuple('PostContent', ['title', 'description', 'price', 'features', 'hashtags', 'emojis'])

MarketplaceGroup = namedtuple('MarketplaceGroup',
                              ['id', 'name', 'url', 'is_active', 'member_count', 'last_post_time', 'posting_rules'],
                              defaults=(True, None, None, ()))


def _price_value(price):
    try:
        return Decimal(str(price))
    except InvalidOperation:
        return Decimal(0)


def _tag(text):
    return '#' + ''.join(str(text).split())


def listing_title(vehicle, include_trim=True):
    """
    "2022 Toyota Camry LE", or without the trim when ``include_trim`` is False.
    """
    adapter = ItemAdapter(vehicle)
    title = f'{adapter["year"]} {adapter["make"]} {adapter["model"]}'
    if include_trim and adapter.get('trim'):
        title += f' {adapter["trim"]}'
    return title


def build_description(vehicle):
    """
    The body of a marketplace post: headline facts, up to eight features, the VIN, dealer details and a call to
    action, one item per line.
    """
    adapter = ItemAdapter(vehicle)
    parts = [
        listing_title(vehicle),
        f'💰 Price: ${adapter["price"]}',
        f'📊 Mileage: {adapter["mileage"]:,} miles',
    ]
    if adapter.get('transmission'):
        parts.append(f'⚙️ Transmission: {adapter["transmission"]}')
    if adapter.get('fuel_type'):
        parts.append(f'⛽ Fuel Type: {adapter["fuel_type"]}')
    if adapter.get('exterior_color'):
        parts.append(f'🎨 Exterior: {adapter["exterior_color"]}')
    if adapter.get('interior_color'):
        parts.append(f'🪑 Interior: {adapter["interior_color"]}')

    features = adapter.get('features') or []
    if features:
        parts.append('')
        parts.append('✨ Key Features:')
        parts.extend(f'• {feature}' for feature in features[:MAX_FEATURES])

    parts.append('')
    parts.append(f'🔍 VIN: {adapter["vin"]}')
    if adapter.get('dealer_name'):
        parts.append(f'🏪 Dealer: {adapter["dealer_name"]}')
    if adapter.get('dealer_location'):
        parts.append(f'📍 Location: {adapter["dealer_location"]}')

    parts.append('')
    parts.append('💬 Comment or message for more details!')
    parts.append('📱 Serious inquiries only')
    return '\n'.join(parts)


def generate_hashtags(vehicle, current_year: int = None):
    adapter = ItemAdapter(vehicle)
    if current_year is None:
        current_year = date.today().year
    hashtags = [
        _tag(adapter['make']),
        _tag(adapter['model']),
        _tag(f'{adapter["year"]}{adapter["make"]}'),
    ]
    if adapter.get('trim'):
        hashtags.append(_tag(adapter['trim']))
    hashtags.extend(GENERAL_HASHTAGS)

    if adapter['mileage'] < LOW_MILEAGE:
        hashtags.append('#LowMileage')
    if adapter['year'] >= current_year - RECENT_MODEL_YEARS:
        hashtags.extend(['#LikeNew', '#RecentModel'])

    price = _price_value(adapter['price'])
    if price < AFFORDABLE_PRICE:
        hashtags.extend(['#Affordable', '#BudgetFriendly'])
    elif price > LUXURY_PRICE:
        hashtags.extend(['#Luxury', '#Premium'])
    return hashtags[:MAX_HASHTAGS]


def select_emojis(vehicle):
    adapter = ItemAdapter(vehicle)
    features = [feature.lower() for feature in adapter.get('features') or []]
    emojis = ['🚗']
    for keyword, emoji in FEATURE_EMOJIS:
        if any(keyword in feature for feature in features):
            emojis.append(emoji)
    if adapter['mileage'] < LOW_MILEAGE:
        emojis.append('✨')
    emojis.extend(['💎', '🔥', '⭐'])
    return emojis[:MAX_EMOJIS]


def generate_post_content(vehicle, current_year: int = None):
    adapter = ItemAdapter(vehicle)
    return PostContent(title=listing_title(vehicle),
                       description=build_description(vehicle),
                       price=f'${adapter["price"]}',
                       features=list(adapter.get('features') or []),
                       hashtags=generate_hashtags(vehicle, current_year),
                       emojis=select_emojis(vehicle))


def format_post(content: PostContent, include_hashtags=True):
    post = content.description
    if include_hashtags and content.hashtags:
        post += '\n\n' + ' '.join(content.hashtags)
    return post


def marketplace_url(vehicle):
    """
    A Marketplace "create item" link with title, price and description filled in.
    """
    params = {
        'title': listing_title(vehicle, include_trim=False),
        'price': str(ItemAdapter(vehicle)['price']),
        'description': build_description(vehicle),
    }
    return f'{MARKETPLACE_CREATE_URL}?{urlencode(params)}'


def can_post_to_group(group: MarketplaceGroup, now: datetime = None):
    """
    Inactive groups are never posted to, and an active group gets at most one post per 24 hours.
    """
    if not group.is_active:
        return False
    if group.last_post_time is None:
        return True
    now = now or datetime.now(group.last_post_time.tzinfo)
    return now - group.last_post_time >= GROUP_COOLDOWN


def select_groups(groups, max_groups=3, now: datetime = None):
    """
    :return: up to ``max_groups`` postable groups, largest membership first
    """
    available = [group for group in groups if can_post_to_group(group, now)]
    available.sort(key=lambda group: group.member_count or 0, reverse=True)
    return available[:max_groups]
