"""Entry import from CSV text and Excel workbooks.

Both formats need a header row with a ``Players`` (or ``Entrants``) column;
names are taken from that column only. A source without that column yields an
empty list and the caller decides how to report it.
"""

from __future__ import annotations

import csv
import logging
import zipfile
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .registry import unique_names
from .validation import NoEntrantsFoundError, UnsupportedFileError

log = logging.getLogger(__name__)

ENTRANT_COLUMNS = frozenset({"players", "entrants"})
CSV_SUFFIXES = frozenset({".csv", ".tsv", ".txt"})
EXCEL_SUFFIXES = frozenset({".xlsx", ".xlsm"})

DELIMITERS = (",", "\t", ";")


def normalize_header(value: object) -> str:
    return str(value if value is not None else "").strip().lower()


def _column_index(headers: list[object]) -> int:
    for index, header in enumerate(headers):
        if normalize_header(header) in ENTRANT_COLUMNS:
            return index
    return -1


def parse_csv_entrants(text: str) -> list[str]:
    """Read the entrants column of delimited text.

    The delimiter is the first of comma, tab and semicolon that exposes an
    entrants header; quoted fields may contain any of them.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []
    for delimiter in DELIMITERS:
        column = _column_index(next(csv.reader(lines[:1], delimiter=delimiter)))
        if column != -1:
            break
    else:
        return []
    names = [
        cells[column].strip() if column < len(cells) else ""
        for cells in csv.reader(lines[1:], delimiter=delimiter)
    ]
    return unique_names(names)


def parse_excel_entrants(path: Path) -> list[str]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        log.warning("Could not read workbook %s: %s", path, exc)
        return []
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        column = _column_index(list(header))
        if column == -1:
            return []
        names = [row[column] for row in rows if column < len(row)]
    finally:
        workbook.close()
    return unique_names(names)


def parse_entrants(path: Path | str) -> list[str]:
    source = Path(path)
    suffix = source.suffix.lower()
    if suffix not in CSV_SUFFIXES | EXCEL_SUFFIXES:
        raise UnsupportedFileError(
            f"Unsupported file type {suffix or '(none)'}; use .csv or .xlsx"
        )
    if not source.is_file():
        raise NoEntrantsFoundError(f"Import file {source} does not exist")
    if suffix in EXCEL_SUFFIXES:
        return parse_excel_entrants(source)
    try:
        text = source.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise NoEntrantsFoundError(f"Could not read {source}: {exc}") from exc
    return parse_csv_entrants(text)


__all__ = [
    "ENTRANT_COLUMNS",
    "normalize_header",
    "parse_csv_entrants",
    "parse_entrants",
    "parse_excel_entrants",
]
