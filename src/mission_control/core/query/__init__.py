from .params import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page, build_event_filter, parse_page
from .service import EventListing, QueryService, RunListing

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "EventListing",
    "Page",
    "QueryService",
    "RunListing",
    "build_event_filter",
    "parse_page",
]
