import csv

import pytest
from scrapy.exceptions import DropItem

from vin_scraper.items import Listing, Vehicle
from vin_scraper.pipelines import CsvExportPipeline, DuplicatePipeline, FormatPipeline, ValidationPipeline
from vin_scraper.utilities import STANDARD_FIELDS
from vin_scraper.vin import is_placeholder_vin

SAMPLE_VIN = '1HGBH41JXMN109186'


def test_format_builds_vehicle(listing, spider):
    vehicle = FormatPipeline().process_item(listing, spider)

    assert isinstance(vehicle, Vehicle)
    assert vehicle['vin'] == SAMPLE_VIN
    assert (vehicle['year'], vehicle['make'], vehicle['model'], vehicle['trim']) == (2022, 'Toyota', 'Camry', 'LE')
    assert vehicle['price'] == '22995.00'
    assert vehicle['mileage'] == 32145
    assert vehicle['features'] == ['Bluetooth', 'Backup Camera']
    assert vehicle['images'] == ['https://img.example.com/1.jpg']
    assert vehicle['transmission'] == 'Automatic'
    assert vehicle['fuel_type'] is None
    assert vehicle['source_site'] == 'Cars.com'
    assert vehicle['status'] == 'scraped'
    assert vehicle['scraped_at']


def test_format_passes_vehicles_through(vehicle, spider):
    assert FormatPipeline().process_item(vehicle, spider) is vehicle


def test_format_searches_card_text_for_vin(listing, spider):
    del listing['vin_text']
    listing['card_text'] = f'2022 Toyota Camry LE VIN {SAMPLE_VIN} Stock 4471'
    assert FormatPipeline().process_item(listing, spider)['vin'] == SAMPLE_VIN


def test_format_uses_placeholder_without_vin(listing, spider):
    del listing['vin_text']
    listing['card_text'] = 'no identifiers here'
    vehicle = FormatPipeline().process_item(listing, spider)
    assert is_placeholder_vin(vehicle['vin'])


def test_format_detects_site_from_url(listing, spider):
    del listing['source_site']
    listing['source_url'] = 'https://www.cargurus.com/Cars/inventorylisting/123'
    assert FormatPipeline().process_item(listing, spider)['source_site'] == 'CarGurus'


def test_format_unknown_site(listing, spider):
    del listing['source_site']
    listing['source_url'] = 'https://example.org/listing/9'
    assert FormatPipeline().process_item(listing, spider)['source_site'] == 'Unknown'


def test_format_keeps_custom_site_name(listing, spider):
    listing['source_site'] = 'Smith Motors'
    assert FormatPipeline().process_item(listing, spider)['source_site'] == 'Smith Motors'


def test_format_unparseable_title_leaves_make_empty(listing, spider):
    listing['title'] = 'Certified pre-owned sedan'
    vehicle = FormatPipeline().process_item(listing, spider)
    assert vehicle['make'] is None
    assert vehicle['model'] is None
    with pytest.raises(DropItem):
        ValidationPipeline().process_item(vehicle, spider)


def test_format_stops_at_vehicle_limit(listing, spider):
    pipeline = FormatPipeline(max_vehicles=1)
    pipeline.process_item(Listing(listing), spider)
    with pytest.raises(DropItem, match='limit'):
        pipeline.process_item(Listing(listing), spider)


def test_validation_keeps_valid_vehicle(vehicle, spider):
    assert ValidationPipeline().process_item(vehicle, spider) is vehicle


def test_validation_drops_with_all_reasons(vehicle, spider):
    vehicle['price'] = '0'
    vehicle['mileage'] = -1
    with pytest.raises(DropItem) as excinfo:
        ValidationPipeline().process_item(vehicle, spider)
    assert 'InvalidPrice' in str(excinfo.value)
    assert 'InvalidMileage' in str(excinfo.value)


def test_call_for_price_is_rejected(listing, spider):
    listing['price_text'] = 'Call for price'
    vehicle = FormatPipeline().process_item(listing, spider)
    assert vehicle['price'] == '0'
    with pytest.raises(DropItem, match='InvalidPrice'):
        ValidationPipeline().process_item(vehicle, spider)


def test_duplicate_vin_is_dropped(vehicle, spider):
    pipeline = DuplicatePipeline()
    pipeline.process_item(vehicle, spider)
    with pytest.raises(DropItem):
        pipeline.process_item(Vehicle(vehicle, vin=SAMPLE_VIN.lower()), spider)


def test_different_vins_are_kept(vehicle, spider):
    pipeline = DuplicatePipeline()
    pipeline.process_item(vehicle, spider)
    other = Vehicle(vehicle, vin='11111111111111111')
    assert pipeline.process_item(other, spider) is other


def test_placeholder_vins_are_never_duplicates(vehicle, spider):
    pipeline = DuplicatePipeline()
    placeholder = Vehicle(vehicle, vin='UNKNOWN_1700000000000_abc123xyz')
    pipeline.process_item(placeholder, spider)
    assert pipeline.process_item(Vehicle(placeholder), spider)['vin'] == placeholder['vin']


def read_rows(path):
    with open(path, newline='', encoding='utf-8') as csv_file:
        return list(csv.reader(csv_file))


def test_csv_export_writes_header_once(vehicle, spider, tmp_path):
    output_file = tmp_path / 'vehicles.csv'

    for vin in (SAMPLE_VIN, '11111111111111111'):
        pipeline = CsvExportPipeline(output_file=str(output_file))
        pipeline.open_spider(spider)
        pipeline.process_item(Vehicle(vehicle, vin=vin), spider)
        pipeline.close_spider(spider)

    rows = read_rows(output_file)
    assert rows[0] == STANDARD_FIELDS
    assert len(rows) == 3
    assert rows[1][0] == SAMPLE_VIN
    assert rows[2][0] == '11111111111111111'
    assert rows[1][STANDARD_FIELDS.index('make')] == 'Toyota'


def test_full_chain(listing, spider, tmp_path):
    output_file = tmp_path / 'vehicles.csv'
    stages = [FormatPipeline(), ValidationPipeline(), DuplicatePipeline(), CsvExportPipeline(str(output_file))]
    stages[-1].open_spider(spider)

    bad = Listing(listing, vin_text='1HGBH41JXMN109187')
    accepted = []
    for item in (listing, Listing(listing), bad):
        try:
            for stage in stages:
                item = stage.process_item(item, spider)
        except DropItem:
            continue
        accepted.append(item)
    stages[-1].close_spider(spider)

    assert [vehicle['vin'] for vehicle in accepted] == [SAMPLE_VIN]
    assert len(read_rows(output_file)) == 2


def test_malformed_source_url_is_dropped_not_raised(listing, spider):
    del listing['source_site']
    listing['source_url'] = 'http://[broken/listing'
    vehicle = FormatPipeline().process_item(listing, spider)
    assert vehicle['source_site'] == 'Unknown'
    with pytest.raises(DropItem, match='MissingSourceUrl'):
        ValidationPipeline().process_item(vehicle, spider)
