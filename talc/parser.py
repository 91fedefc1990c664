"""
Record parser (raw table text -> rows)
======================================

Turns the destinations table into a list of plain dicts
(column name -> string). Nothing is validated here; that is the
normalizer's job in `talc/loader.py`.

Key ideas:
- Parsing is best-effort: blank lines are skipped, rows with too many fields
  are dropped, short rows get '' for the missing cells.
- The header line fixes the width of the table. A data row with an extra
  field is dropped on its own; it never shifts the other rows.
- A line with an unbalanced quote is dropped too, instead of failing the
  whole table.
- Header names are trimmed and lower-cased so 'Name ' and 'name' are the same.
- The caller always receives the full row list, never partial results.
"""

from __future__ import annotations
import io
import logging
import zipfile
from typing import Callable, Dict, List, Optional, Sequence
import pandas as pd
from .errors import LoadFailure

logger = logging.getLogger(__name__)

Row = Dict[str, str]


def _to_str(x) -> str:
    if x is None or (not isinstance(x, str) and pd.isna(x)):
        return ""
    return str(x)


def _rows_from_frame(df: pd.DataFrame, columns: Optional[Sequence] = None) -> List[Row]:
    cols = [_to_str(c).strip().lower() for c in (df.columns if columns is None else columns)]
    rows: List[Row] = []
    for values in df.itertuples(index=False, name=None):
        row = {c: _to_str(v) for c, v in zip(cols, values)}
        # a line of separators / whitespace is a blank line too
        if not any(v.strip() for v in row.values()):
            continue
        rows.append(row)
    return rows


def _read_frame(text: str, delimiter: str) -> pd.DataFrame:
    # header=None: the header is read as row 0, so its width is the table width
    return pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        header=None,
        index_col=False,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        on_bad_lines="skip",
    )


def _drop_unbalanced_lines(text: str) -> str:
    """Keep the header and every line with an even number of quote characters."""
    lines = text.splitlines()
    kept = lines[:1] + [line for line in lines[1:] if line.count('"') % 2 == 0]
    dropped = len(lines) - len(kept)
    if dropped:
        logger.warning("Dropped %d line(s) with an unbalanced quote", dropped)
    return "\n".join(kept)


def parse_table(text: str, on_complete: Optional[Callable[[List[Row]], None]] = None,
                delimiter: str = ",") -> List[Row]:
    """Parse delimited text with a header row into a list of rows.

    Raises:
        LoadFailure: the text has no header or cannot be parsed at all.
    """
    if text is None or not str(text).strip():
        raise LoadFailure("Destination table is empty")
    try:
        try:
            df = _read_frame(text, delimiter)
        except pd.errors.ParserError as e:
            logger.debug("Strict parse failed (%s), retrying without unbalanced quotes", e)
            df = _read_frame(_drop_unbalanced_lines(text), delimiter)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise LoadFailure(f"Could not parse destination table: {e}") from e

    if df.empty:
        raise LoadFailure("Destination table has no header row")
    header = list(df.iloc[0])
    rows = _rows_from_frame(df.iloc[1:], header)
    logger.debug("Parsed %d rows (columns=%s)", len(rows), header)
    if on_complete is not None:
        on_complete(rows)
    return rows


def parse_workbook(path: str, on_complete: Optional[Callable[[List[Row]], None]] = None) -> List[Row]:
    """Read the first sheet of an .xlsx export into the same row shape."""
    try:
        df = pd.read_excel(path, engine="openpyxl", dtype=str, keep_default_na=False)
    except FileNotFoundError as e:
        raise LoadFailure(f"Destination workbook not found: {path}") from e
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise LoadFailure(f"Could not read destination workbook {path}: {e}") from e

    rows = _rows_from_frame(df)
    logger.debug("Parsed %d rows from workbook %s", len(rows), path)
    if on_complete is not None:
        on_complete(rows)
    return rows
