from .responses import error_response, service_error_response
from .timestamps import (
    UTC,
    epoch_ms,
    ms_to_iso,
    parse_iso,
    to_storage_timestamp,
    utc_now,
)

__all__ = [
    "error_response",
    "service_error_response",
    "UTC",
    "epoch_ms",
    "ms_to_iso",
    "parse_iso",
    "to_storage_timestamp",
    "utc_now",
]
