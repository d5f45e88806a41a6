"""Company Directory API: search, filter and page through a company collection."""
