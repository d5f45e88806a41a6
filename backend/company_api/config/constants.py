"""
Centralized constants for the company directory backend.

Import from here instead of redefining page bounds or field names.
"""
from datetime import datetime

# Page size bounds applied to every listing request
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Signed 64-bit range: the widest integer SQLite and BSON can bind
STORE_INT_MIN = -(2 ** 63)
STORE_INT_MAX = 2 ** 63 - 1

# Highest page whose offset still fits a store integer at MAX_LIMIT
MAX_PAGE = STORE_INT_MAX // MAX_LIMIT

# Newest records first when the client does not ask for an order
DEFAULT_SORT = "-createdAt"
DESCENDING_MARKER = "-"

# Record fields (wire names) the stores know how to order by
SORTABLE_FIELDS = {
    "name",
    "industry",
    "location",
    "size",
    "foundedYear",
    "createdAt",
    "updatedAt",
    "id",
    "_id",
}

# Fields covered by the full-text index
TEXT_SEARCH_FIELDS = ("name", "description", "tags")

# Company field bounds
MIN_COMPANY_SIZE = 1
MIN_FOUNDED_YEAR = 1800


def max_founded_year() -> int:
    """Latest accepted founding year: allows companies founded in the near future."""
    return datetime.now().year + 5
