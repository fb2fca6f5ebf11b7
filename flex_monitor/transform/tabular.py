"""Tabular (CSV) payload parsing.

The first row is the header. Rows whose column count does not match the
header are skipped with a warning; a malformed row never aborts the file.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import List, Tuple, Union

from ..core.domain import Record
from ..core.errors import FormatError
from .coercion import coerce_cell

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"


def decode_payload(payload: Union[bytes, str]) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FormatError(f"payload is not valid UTF-8: {e}") from e


def parse_tabular(payload: Union[bytes, str], source_name: str = "") -> List[Record]:
    """Parse CSV text into records with coerced cell values."""
    text = decode_payload(payload)
    rows = _read_rows(text, source_name)
    if not rows:
        return []

    headers = [h.strip() for h in rows[0][1]]
    records: List[Record] = []
    skipped = 0

    for line_num, row in rows[1:]:
        if len(row) != len(headers):
            skipped += 1
            logger.warning(
                "[TABULAR] Column count mismatch, skipping row source=%s line=%d "
                "expected_columns=%d actual_columns=%d",
                source_name, line_num, len(headers), len(row),
            )
            continue
        records.append({header: coerce_cell(cell) for header, cell in zip(headers, row)})

    if skipped:
        logger.info(
            "[TABULAR] Parsed source=%s rows=%d skipped=%d",
            source_name, len(records), skipped,
        )
    return records


def _read_rows(text: str, source_name: str) -> List[Tuple[int, List[str]]]:
    """Non-empty, non-comment rows paired with their ending line number.

    A row with malformed quoting is skipped; the reader resumes on the
    next line.
    """
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    rows: List[Tuple[int, List[str]]] = []

    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            logger.warning(
                "[TABULAR] Malformed row, skipping source=%s line=%d error=%s",
                source_name, reader.line_num, e,
            )
            continue
        if not row or row[0].startswith(COMMENT_PREFIX):
            continue
        rows.append((reader.line_num, row))

    return rows
