# Define your item pipelines here
#
# Don't forget to add your pipeline to the ITEM_PIPELINES setting
# See: https://docs.scrapy.org/en/latest/topics/item-pipeline.html

import os
from datetime import datetime, timezone

from itemadapter import ItemAdapter
from scrapy.exceptions import DropItem
from scrapy.exporters import CsvItemExporter

from vin_scraper import settings as default_settings
from vin_scraper.items import Listing, Vehicle, VehicleStatus
from vin_scraper.utilities import (SOURCE_SITES, STANDARD_FIELDS, clean_text, clean_text_list, detect_site,
                                   filter_image_urls, parse_mileage, parse_price, parse_vehicle_title,
                                   site_display_name)
from vin_scraper.validation import describe_errors, validate_vehicle_record
from vin_scraper.vin import find_vin, is_placeholder_vin, make_placeholder_vin, normalize_vin

OPTIONAL_TEXT_FIELDS = ('transmission', 'fuel_type', 'exterior_color', 'interior_color', 'description',
                        'dealer_name', 'dealer_location')


class FormatPipeline:
    """
    Turns a Listing full of raw card text into a Vehicle. Vehicles that were built by the spider itself pass straight
    through.
    """

    def __init__(self, max_vehicles=default_settings.MAX_VEHICLES):
        self.max_vehicles = max_vehicles
        self.formatted = 0

    @classmethod
    def from_crawler(cls, crawler):
        return cls(max_vehicles=crawler.settings.getint('MAX_VEHICLES', default_settings.MAX_VEHICLES))

    @staticmethod
    def extract_vin(listing: ItemAdapter):
        """
        Uses the VIN element's text if there is one, otherwise searches the whole card, otherwise falls back to a
        placeholder so the listing can still be tracked.
        """
        vin_text = clean_text(listing.get('vin_text'))
        if vin_text:
            return normalize_vin(vin_text)
        return find_vin(listing.get('card_text')) or make_placeholder_vin()

    @staticmethod
    def source_site(listing: ItemAdapter):
        """
        Spiders may hand over a site key ('cars'), a display name ('Cars.com') or nothing at all, in which case the
        site is worked out from the source URL.
        """
        site = clean_text(listing.get('source_site'))
        if site is None:
            return site_display_name(detect_site(listing.get('source_url')))
        if site.lower() in SOURCE_SITES or site.lower() == 'unknown':
            return site_display_name(site.lower())
        return site

    def process_item(self, item, spider):
        if not isinstance(item, Listing):
            return item
        if self.max_vehicles and self.formatted >= self.max_vehicles:
            raise DropItem(f'vehicle limit of {self.max_vehicles} reached')
        listing = ItemAdapter(item)

        title = parse_vehicle_title(listing.get('title'))
        if title.make is None or title.model is None or title.year is None:
            spider.logger.warning(f'Could not parse vehicle title: {listing.get("title")!r}')

        vehicle = Vehicle(vin=self.extract_vin(listing),
                          make=title.make,
                          model=title.model,
                          year=title.year,
                          trim=title.trim,
                          price=parse_price(listing.get('price_text')),
                          mileage=parse_mileage(listing.get('mileage_text')),
                          features=clean_text_list(listing.get('features')),
                          images=filter_image_urls(listing.get('images')),
                          source_url=clean_text(listing.get('source_url')),
                          source_site=self.source_site(listing),
                          status=VehicleStatus.SCRAPED.value,
                          scraped_at=datetime.now(timezone.utc).isoformat())
        for field in OPTIONAL_TEXT_FIELDS:
            vehicle[field] = clean_text(listing.get(field))
        if is_placeholder_vin(vehicle['vin']):
            spider.logger.warning(f'No VIN found for vehicle: {listing.get("title")!r}')

        self.formatted += 1
        return vehicle


class ValidationPipeline:
    """
    Drops any vehicle that breaks a validation rule. Nothing gets fixed up here; the whole record goes.
    """

    def process_item(self, vehicle, spider):
        result = validate_vehicle_record(vehicle)
        if not result.valid:
            reasons = describe_errors(result.errors)
            spider.logger.warning(f'Rejected vehicle {ItemAdapter(vehicle).get("vin")}: {reasons}')
            raise DropItem(f'invalid vehicle: {reasons}')
        return vehicle


class DuplicatePipeline:
    def __init__(self):
        self.vins_seen = set()

    def process_item(self, vehicle, spider):
        """
        Vehicles are identified by VIN alone. Placeholder VINs are unique by construction, so vehicles carrying one are
        never treated as repeats.
        """
        vin = ItemAdapter(vehicle).get('vin')
        if not vin or is_placeholder_vin(vin):
            return vehicle
        vin = normalize_vin(vin)
        if vin in self.vins_seen:
            raise DropItem(f'Duplicate VIN found: {vin}')
        self.vins_seen.add(vin)
        return vehicle


class CsvExportPipeline:
    """
    Appends every vehicle that makes it this far to a CSV file. The header row is written only when the file is new
    or empty, so repeated crawls keep adding to the same file.
    """

    def __init__(self, output_file=default_settings.VEHICLES_CSV):
        self.output_file = output_file

    @classmethod
    def from_crawler(cls, crawler):
        return cls(output_file=crawler.settings.get('VEHICLES_CSV', default_settings.VEHICLES_CSV))

    # noinspection PyAttributeOutsideInit
    def open_spider(self, spider):
        include_headers = not os.path.exists(self.output_file) or os.path.getsize(self.output_file) == 0
        if include_headers:
            spider.logger.info(f'{self.output_file} is new, writing header row')
        self.vehicles_csv = open(self.output_file, 'ab')
        self.exporter = CsvItemExporter(self.vehicles_csv,
                                        include_headers_line=include_headers,
                                        fields_to_export=STANDARD_FIELDS)
        self.exporter.start_exporting()

    def close_spider(self, spider):
        if hasattr(self, 'exporter'):
            self.exporter.finish_exporting()
            self.vehicles_csv.close()

    def process_item(self, vehicle, spider):
        self.exporter.export_item(vehicle)
        return vehicle
