"""Delimited-file record source for the screening dataset.

The export carries duplicate header names when an upstream sheet re-emits a
column (two ``haram_composition_json`` columns). Duplicates are renamed
``<name>_2``, ``<name>_3``, ... in order of appearance so no value is lost.
"""

import csv
import logging
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)


def dedupe_headers(headers: list[str]) -> list[str]:
    """['a', 'b', 'a', 'a'] -> ['a', 'b', 'a_2', 'a_3']."""
    seen: dict[str, int] = {}
    result = []
    for header in headers:
        name = header.strip()
        count = seen.get(name, 0) + 1
        seen[name] = count
        result.append(name if count == 1 else f"{name}_{count}")
    return result


class CsvRecordSource:
    """Iterates raw row dicts from a CSV file with a header row."""

    def __init__(self, path: Union[str, Path], delimiter: str = ",", encoding: str = "utf-8-sig"):
        self.path = Path(path)
        self.delimiter = delimiter
        self.encoding = encoding

    @property
    def name(self) -> str:
        return str(self.path)

    def __iter__(self) -> Iterator[dict[str, str]]:
        if not self.path.exists():
            raise FileNotFoundError(f"Screening dataset not found: {self.path}")

        with open(self.path, newline="", encoding=self.encoding) as f:
            reader = csv.reader(f, delimiter=self.delimiter)
            try:
                headers = dedupe_headers(next(reader))
            except StopIteration:
                logger.warning(f"Screening dataset {self.path} is empty")
                return

            for line_number, values in enumerate(reader, start=2):
                if not any(value.strip() for value in values):
                    continue
                if len(values) > len(headers):
                    logger.debug(f"{self.path.name}:{line_number} has {len(values)} values for {len(headers)} headers")
                yield dict(zip(headers, values))
