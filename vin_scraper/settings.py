# Scrapy settings for the vin_scraper pipelines
#
# Spiders that feed Listing or Vehicle items into these pipelines can pull this module in with
# SCRAPY_SETTINGS_MODULE=vin_scraper.settings, or copy ITEM_PIPELINES into their custom_settings.
#
#     https://docs.scrapy.org/en/latest/topics/settings.html

BOT_NAME = 'vin_scraper'

ITEM_PIPELINES = {
    'vin_scraper.pipelines.FormatPipeline': 300,
    'vin_scraper.pipelines.ValidationPipeline': 400,
    'vin_scraper.pipelines.DuplicatePipeline': 500,
    'vin_scraper.pipelines.CsvExportPipeline': 800,
}

# where CsvExportPipeline appends accepted vehicles
VEHICLES_CSV = 'vehicles.csv'

# listings FormatPipeline accepts per crawl, the rest are dropped
MAX_VEHICLES = 50

LOG_LEVEL = 'INFO'
