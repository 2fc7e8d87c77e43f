from extraction.models import PageData, TimeElement, JsonLdError, Author, Headings, ImageStats
from extraction.engine import DomExtractor, flatten_json_ld
from extraction.dates import parse_date, months_between
