"""Dataset access: CSV record source and the read-only screening repository.

Provides:
- CsvRecordSource for the delimited export (duplicate headers suffixed)
- ScreeningRepository lookups (ticker, upsert key, distinct values, paged lists)
"""

from .csv_source import CsvRecordSource, dedupe_headers
from .repository import DatasetLoadReport, RecordFilters, RecordPage, ScreeningRepository

__all__ = [
    "CsvRecordSource",
    "dedupe_headers",
    "ScreeningRepository",
    "RecordFilters",
    "RecordPage",
    "DatasetLoadReport",
]
