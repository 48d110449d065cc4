"""
CSV source for trade imports.

Broker exports often start with account banners or report titles before
the real header line; those preamble lines are skipped until a line
mentions a recognized column name.
"""

import csv
import io
import re
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from trade_journal.application.services.row_normalizer import (
    APPLICATION_ALIASES,
    BROKER_ALIASES,
    normalize_header,
)
from trade_journal.domain.errors import AppError, BatchFailure, ErrorCode

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = ",;\t|"
_ANY_DELIMITER = re.compile(r"[,;\t|]")

KNOWN_HEADERS = frozenset(
    alias
    for table in (BROKER_ALIASES, APPLICATION_ALIASES)
    for aliases in table.values()
    for alias in aliases
)

RawRow = Dict[str, str]


def _fail(code: ErrorCode, message: str, **context) -> BatchFailure:
    logger.error(message)
    return BatchFailure(AppError(code, message, context or None))


def detect_delimiter(header_line: str) -> str:
    """The candidate delimiter used most often in the header line; comma on a tie."""
    return max(CANDIDATE_DELIMITERS, key=header_line.count)


def is_header_line(line: str) -> bool:
    """True when any cell, split on any candidate delimiter, is a known column name."""
    return any(normalize_header(cell) in KNOWN_HEADERS for cell in _ANY_DELIMITER.split(line))


def read_table(text: str) -> Tuple[List[str], List[RawRow]]:
    """
    Split CSV text into a header list and one dict per data row.

    Only the preamble is scanned line by line. Everything from the header
    on goes to the csv module as written, so quoted cells may span lines.
    Blank rows are dropped. Data rows keep their file order.

    Raises:
        BatchFailure: NODATA for empty input, NOHEADER when no line
            carries a recognized column name.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    if not text.strip():
        raise _fail(ErrorCode.NODATA, "Import file is empty")

    # Rejoined with "\n" below, so every other character survives as written
    lines = text.split("\n")
    header_idx: Optional[int] = None
    for i, line in enumerate(lines):
        if is_header_line(line):
            header_idx = i
            break

    if header_idx is None:
        raise _fail(ErrorCode.NOHEADER, "No recognizable header row found")
    if header_idx:
        logger.debug(f"Skipped {header_idx} preamble line(s) before header")

    delimiter = detect_delimiter(lines[header_idx])
    body = "\n".join(lines[header_idx:])
    reader = csv.DictReader(io.StringIO(body, newline=""), delimiter=delimiter)
    headers = [h.strip() for h in (reader.fieldnames or [])]
    reader.fieldnames = headers
    rows = [
        row
        for row in reader
        if any(isinstance(v, str) and v.strip() for v in row.values())
    ]

    logger.debug(f"Read {len(rows)} row(s) with delimiter {delimiter!r} and headers {headers}")
    return headers, rows


def read_file(path: Union[str, Path], max_bytes: Optional[int] = None) -> str:
    """
    Read an import file as text.

    Raises:
        BatchFailure: UNREADABLE when the file cannot be opened or decoded,
            TOO_LARGE when it exceeds max_bytes.
    """
    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError as e:
        raise _fail(ErrorCode.UNREADABLE, f"Cannot read {path}: {e}", path=str(path)) from e

    if max_bytes is not None and size > max_bytes:
        raise _fail(
            ErrorCode.TOO_LARGE,
            f"{path.name} is {size} bytes, limit is {max_bytes}",
            path=str(path),
            size=size,
        )

    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise _fail(ErrorCode.UNREADABLE, f"Cannot read {path}: {e}", path=str(path)) from e
