"""
Code Ingestion

Extracts WiFi access codes from uploaded files. Uploads come in several
layouts and no format flag is sent along, so the parser recognises them from
the content:

- one code per line or row
- an ``unused`` status marker followed by the code, either in the next
  column or as the next whitespace-separated token
- CSV lines, where the second field holds the code when present
- a leading header row made only of tokens such as ``code`` or ``status``

Spreadsheets (.xlsx / .xls) are decoded with pandas; every other extension is
read as delimited text. Unreadable content yields no codes instead of an
error, so callers only ever see "zero codes found".
"""

import io
import logging
import re
from typing import Iterable, List, Optional, Set

import pandas as pd

logger = logging.getLogger(__name__)

MARKER = "unused"
HEADER_TOKENS = {"code", "codes", "wifi", "status", "unused"}
SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")

_WHITESPACE = re.compile(r"\s+")
_ROW_SEPARATORS = re.compile(r"[,\s]+")


def _is_marker(token: str) -> bool:
    return token.strip().lower() == MARKER


def _is_header(tokens: Iterable[str]) -> bool:
    tokens = [token.strip().lower() for token in tokens if token.strip()]
    return bool(tokens) and all(token in HEADER_TOKENS for token in tokens)


def _first_non_marker(text: str) -> Optional[str]:
    for token in _WHITESPACE.split(text.strip()):
        if token and not _is_marker(token):
            return token
    return None


def _has_marker_token(text: str) -> bool:
    return any(_is_marker(token) for token in _WHITESPACE.split(text.strip()))


def _finalize(candidates: Iterable[Optional[str]]) -> Set[str]:
    codes = set()
    for candidate in candidates:
        if candidate is None:
            continue
        value = candidate.strip()
        if value and not _is_marker(value):
            codes.add(value)
    return codes


def code_from_line(line: str) -> Optional[str]:
    """
    Extract the code from one line of a text/CSV upload.

    Returns None for blank lines and header lines.
    """
    line = line.strip()
    if not line:
        return None
    if _is_header(_ROW_SEPARATORS.split(line)):
        return None

    if "," in line:
        fields = [part.strip() for part in line.split(",")]
        if fields[1] and not _is_marker(fields[1]):
            return fields[1]
        return fields[0]

    if _has_marker_token(line):
        return _first_non_marker(line)

    return line


def code_from_cells(row: Iterable[object]) -> Optional[str]:
    """
    Extract the code from one spreadsheet row.

    Returns None for empty rows and header rows.
    """
    cells = [str(cell).strip() for cell in row if cell is not None]
    cells = [cell for cell in cells if cell]
    if not cells:
        return None
    if _is_header(cells):
        return None

    # "unused" in column A, code in column B
    if len(cells) >= 2 and _is_marker(cells[0]):
        return cells[1]
    # "unused   code" in a single cell
    if len(cells) == 1 and _has_marker_token(cells[0]):
        return _first_non_marker(cells[0])
    return cells[0]


def parse_text(content: str) -> Set[str]:
    return _finalize(code_from_line(line) for line in content.splitlines())


def parse_rows(rows: Iterable[Iterable[object]]) -> Set[str]:
    return _finalize(code_from_cells(row) for row in rows)


def _read_spreadsheet_rows(content: bytes) -> List[List[str]]:
    df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=str)
    df = df.fillna("")
    return df.values.tolist()


def _decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def parse_codes(content: bytes, filename: str) -> Set[str]:
    """
    Parse an uploaded file into a set of unique code strings.

    Args:
        content (bytes): Raw file content
        filename (str): Declared file name, used only for its extension

    Returns:
        Set[str]: Non-empty, trimmed, deduplicated codes (empty on unreadable input)
    """
    name = (filename or "").lower()
    logger.info(f"Parsing uploaded file '{filename}' ({len(content or b'')} bytes)")

    if not content:
        logger.warning(f"Uploaded file '{filename}' is empty")
        return set()

    if name.endswith(SPREADSHEET_EXTENSIONS):
        try:
            rows = _read_spreadsheet_rows(content)
        except Exception as e:
            logger.warning(f"Could not read spreadsheet '{filename}': {str(e)}")
            return set()
        codes = parse_rows(rows)
    elif b"\x00" in content:
        logger.warning(f"Uploaded file '{filename}' looks binary, not delimited text")
        return set()
    else:
        codes = parse_text(_decode_text(content))

    logger.info(f"Found {len(codes)} unique codes in '{filename}'")
    return codes
