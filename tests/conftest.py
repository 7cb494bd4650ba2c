import pytest
import scrapy

from vin_scraper.items import Listing, Vehicle

SAMPLE_VIN = '1HGBH41JXMN109186'


@pytest.fixture
def spider():
    return scrapy.Spider(name='listings')


@pytest.fixture
def vehicle():
    return Vehicle(vin=SAMPLE_VIN,
                   make='Toyota',
                   model='Camry',
                   year=2022,
                   trim='LE',
                   price='22995.00',
                   mileage=32145,
                   transmission='Automatic',
                   fuel_type='Gasoline',
                   exterior_color='Silver',
                   interior_color=None,
                   features=['Bluetooth', 'Leather Seats', 'Backup Camera'],
                   images=['https://img.example.com/1.jpg'],
                   description=None,
                   source_url='https://www.cars.com/vehicledetail/123/',
                   source_site='Cars.com',
                   dealer_name='Main Street Toyota',
                   dealer_location='Springfield, IL',
                   status='scraped')


@pytest.fixture
def listing():
    return Listing(title='2022 Toyota Camry LE',
                   price_text='$22,995.00',
                   mileage_text='32,145 mi',
                   vin_text=f' {SAMPLE_VIN.lower()} ',
                   features=['  Bluetooth ', '', 'Backup Camera'],
                   images=['https://img.example.com/1.jpg', '/relative.jpg', None],
                   dealer_name='Main Street Toyota',
                   transmission='  Automatic ',
                   source_url='https://www.cars.com/vehicledetail/123/',
                   source_site='cars')
