# Define here the models for your scraped items
#
# See documentation in:
# https://docs.scrapy.org/en/latest/topics/items.html

from enum import Enum

import scrapy


class VehicleStatus(str, Enum):
    SCRAPED = 'scraped'
    POSTED = 'posted'
    FAILED = 'failed'


class Listing(scrapy.Item):
    """
    The raw text fragments pulled from one listing card, before any parsing.

    Fields:
        - title: freeform title, e.g. "2022 Toyota Camry LE"
        - price_text, mileage_text: the text exactly as displayed
        - vin_text: the VIN element's text, if the site shows one
        - card_text: all of the card's text, searched for a VIN when vin_text is missing
        - features, images: lists of strings / image URLs
        - dealer_name, dealer_location
        - transmission, fuel_type, exterior_color, interior_color, description
        - source_url, source_site
    """
    title = scrapy.Field()
    price_text = scrapy.Field()
    mileage_text = scrapy.Field()
    vin_text = scrapy.Field()
    card_text = scrapy.Field()
    features = scrapy.Field()
    images = scrapy.Field()
    dealer_name = scrapy.Field()
    dealer_location = scrapy.Field()
    transmission = scrapy.Field()
    fuel_type = scrapy.Field()
    exterior_color = scrapy.Field()
    interior_color = scrapy.Field()
    description = scrapy.Field()
    source_url = scrapy.Field()
    source_site = scrapy.Field()


class Vehicle(scrapy.Item):
    """
    Vehicle scrapy item. Fields that were never set are simply absent from the item.

    Required: vin, make, model, year, price, mileage, source_url, source_site
    Optional: trim, transmission, fuel_type, exterior_color, interior_color, description, dealer_name,
    dealer_location
    Lists: features, images (at most 5)
    Bookkeeping: status (defaults to 'scraped'), scraped_at
    """
    vin = scrapy.Field()
    make = scrapy.Field()
    model = scrapy.Field()
    year = scrapy.Field()
    trim = scrapy.Field()
    price = scrapy.Field()
    mileage = scrapy.Field()
    transmission = scrapy.Field()
    fuel_type = scrapy.Field()
    exterior_color = scrapy.Field()
    interior_color = scrapy.Field()
    features = scrapy.Field()
    images = scrapy.Field()
    description = scrapy.Field()
    source_url = scrapy.Field()
    source_site = scrapy.Field()
    dealer_name = scrapy.Field()
    dealer_location = scrapy.Field()
    status = scrapy.Field()
    scraped_at = scrapy.Field()
