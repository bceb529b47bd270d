"""
Document serialization for import and export files.

Readers yield plain documents, or a `RecordError` for a record that could not
be parsed, so that one bad line does not stop an import. Writers take search
hits (`_id`, `_score`, `_source`, ...); tabular formats get one column per
top-level `_source` key, with nested values rendered as compact JSON.
"""

import csv
import json
import logging
import zipfile
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from mcp_types.flows import FileFormat


logger = logging.getLogger(__name__)

HIT_METADATA_FIELDS = ("_id", "_score", "_index")
DEFAULT_HEADER_SAMPLE = 10
EXCEL_COLUMN_WIDTH = 15


class CodecError(Exception):
    """A file could not be opened, read or written as a whole."""


@dataclass(frozen=True)
class RecordError:
    """One input record that could not be parsed."""
    message: str
    raw: Optional[str] = None


ImportItem = Union[Dict[str, Any], RecordError]


# ========== READING ==========

def infer_scalar(text: str) -> Any:
    """
    Convert a CSV cell to int, float, bool or None where it looks like one.

    Args:
        text: Raw cell text

    Returns:
        Typed value, or the text unchanged
    """
    if text == "":
        return None
    if "_" in text or text != text.strip():
        return text
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        if number == number and number not in (float("inf"), float("-inf")):
            return number
        return text
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return text


def _open_text(path: Path, newline: Optional[str] = None):
    try:
        return open(path, "r", encoding="utf-8-sig", newline=newline)
    except OSError as e:
        raise CodecError(f"Failed to open file: {path} ({e.strerror or e})") from e


def _first_significant_char(path: Path) -> str:
    with _open_text(path) as handle:
        while True:
            chunk = handle.read(4096)
            if not chunk:
                return ""
            stripped = chunk.lstrip()
            if stripped:
                return stripped[0]


def _load_json_array(path: Path) -> Iterator[ImportItem]:
    with _open_text(path) as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as e:
            raise CodecError(f"Failed to parse JSON array in {path}: {e}") from e

    if not isinstance(data, list):
        raise CodecError(f"Expected a JSON array in {path}")
    return _iter_array_items(data)


def _iter_array_items(data: List[Any]) -> Iterator[ImportItem]:
    for position, item in enumerate(data, start=1):
        if isinstance(item, dict):
            yield item
        else:
            yield RecordError(f"Array element {position} is not a JSON object")


def _iter_ndjson(path: Path) -> Iterator[ImportItem]:
    with _open_text(path) as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                document = json.loads(line)
            except json.JSONDecodeError as e:
                yield RecordError(f"Failed to parse JSON on line {line_number}: {e.msg}", raw=line)
                continue
            if not isinstance(document, dict):
                yield RecordError(f"Line {line_number} is not a JSON object", raw=line)
                continue
            yield document


def _iter_json(path: Path) -> Iterator[ImportItem]:
    if _first_significant_char(path) == "[":
        return _load_json_array(path)
    return _iter_ndjson(path)


def _iter_csv(path: Path) -> Iterator[ImportItem]:
    with _open_text(path, newline="") as handle:
        reader = csv.reader(handle)
        try:
            headers = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise CodecError(f"Failed to read CSV header in {path}: {e}") from e

        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                yield RecordError(f"Failed to read CSV record on line {reader.line_num}: {e}")
                continue
            if not row:
                continue
            if len(row) != len(headers):
                yield RecordError(
                    f"CSV record on line {reader.line_num} has {len(row)} fields, expected {len(headers)}"
                )
                continue
            yield {
                header: infer_scalar(cell)
                for header, cell in zip(headers, row)
                if header
            }


def _open_excel(path: Path) -> Iterator[ImportItem]:
    try:
        workbook = load_workbook(filename=str(path), read_only=True, data_only=True)
    except (OSError, ValueError, KeyError, zipfile.BadZipFile) as e:
        raise CodecError(f"Failed to open workbook: {path} ({e})") from e
    return _iter_sheet(workbook)


def _excel_value(cell: Any) -> Any:
    if isinstance(cell, (datetime, date, time)):
        return cell.isoformat()
    return cell


def _iter_sheet(workbook) -> Iterator[ImportItem]:
    try:
        rows = workbook.active.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return
        headers = [str(cell) if cell is not None else "" for cell in header_row]

        for row in rows:
            if row is None or all(cell is None for cell in row):
                continue
            yield {
                header: _excel_value(cell)
                for header, cell in zip(headers, row)
                if header
            }
    finally:
        workbook.close()


def iter_documents(path: Union[str, Path], fmt: Union[FileFormat, str]) -> Iterator[ImportItem]:
    """
    Stream documents from an import file.

    JSON files may hold one array or newline-delimited objects.

    Args:
        path: Input file
        fmt: File format

    Returns:
        Iterator of documents and RecordErrors in file order

    Raises:
        CodecError: If the file cannot be opened or its structure is unreadable
    """
    path = Path(path)
    fmt = FileFormat.parse(fmt)

    if not path.is_file():
        raise CodecError(f"Failed to open file: {path} (not found)")

    if fmt == FileFormat.JSON:
        return _iter_json(path)
    if fmt == FileFormat.CSV:
        return _iter_csv(path)
    return _open_excel(path)


# ========== FIELD ACCESS ==========

def get_nested_value(hit: Dict[str, Any], path: str) -> Any:
    """
    Read a field from a search hit.

    `_id`, `_score` and `_index` come from the hit itself; any other path
    matches a literal `_source` key first, then walks `_source` one
    dot-separated segment at a time.

    Args:
        hit: Search hit
        path: Field path, e.g. "user.name"

    Returns:
        The value, or None when any segment is missing
    """
    if path in HIT_METADATA_FIELDS:
        return hit.get(path)

    source = hit.get("_source", hit)
    if not isinstance(source, dict):
        return None
    return get_document_value(source, path)


def get_document_value(document: Dict[str, Any], path: str) -> Any:
    """Read a dotted path from a plain document (no hit metadata)."""
    if path in document:
        return document[path]
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def extract_all_fields(hits: Sequence[Dict[str, Any]], sample_size: int = DEFAULT_HEADER_SAMPLE) -> List[str]:
    """
    Infer export columns from the first hits.

    Args:
        hits: Search hits
        sample_size: How many hits to inspect

    Nested objects stay in one column; their cells hold compact JSON.

    Returns:
        `_id`, `_score`, then the sorted top-level `_source` keys
    """
    fields = set()
    for hit in hits[:sample_size]:
        source = hit.get("_source")
        if isinstance(source, dict):
            fields.update(source.keys())
    return ["_id", "_score"] + sorted(fields)


def value_to_string(value: Any) -> str:
    """Render a field value as a single table cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def filter_fields(hit: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """
    Reduce a hit to the selected fields plus `_id` and `_score`.

    Args:
        hit: Search hit
        fields: Selected field paths

    Returns:
        Flat dict keyed by field path
    """
    filtered: Dict[str, Any] = {}
    for field in fields:
        value = get_nested_value(hit, field)
        if value is not None:
            filtered[field] = value

    for meta in ("_id", "_score"):
        if meta in hit:
            filtered[meta] = hit[meta]
    return filtered


# ========== WRITING ==========

def _write_json(path: Path, hits: Sequence[Dict[str, Any]], selected_fields: Optional[List[str]]) -> None:
    payload = [filter_fields(hit, selected_fields) for hit in hits] if selected_fields else list(hits)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
        handle.write("\n")


def _table_headers(hits: Sequence[Dict[str, Any]], selected_fields: Optional[List[str]], sample_size: int) -> List[str]:
    if selected_fields:
        return list(selected_fields)
    return extract_all_fields(hits, sample_size)


def _write_csv(path: Path, hits: Sequence[Dict[str, Any]], headers: List[str]) -> None:
    with open(path, "w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        for hit in hits:
            writer.writerow([value_to_string(get_nested_value(hit, header)) for header in headers])


def _write_excel(path: Path, hits: Sequence[Dict[str, Any]], headers: List[str]) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Export"

    bold = Font(bold=True)
    for col, header in enumerate(headers, start=1):
        cell = sheet.cell(row=1, column=col, value=header)
        cell.font = bold

    for row, hit in enumerate(hits, start=2):
        for col, header in enumerate(headers, start=1):
            sheet.cell(row=row, column=col, value=value_to_string(get_nested_value(hit, header)))

    for col in range(1, len(headers) + 1):
        sheet.column_dimensions[get_column_letter(col)].width = EXCEL_COLUMN_WIDTH

    workbook.save(str(path))


def write_documents(
    path: Union[str, Path],
    hits: Sequence[Dict[str, Any]],
    fmt: Union[FileFormat, str],
    selected_fields: Optional[List[str]] = None,
    sample_size: int = DEFAULT_HEADER_SAMPLE,
) -> Path:
    """
    Write search hits to a file.

    Args:
        path: Output file; parent directories are created
        hits: Search hits to write
        fmt: File format
        selected_fields: Columns/fields to keep (all when None)
        sample_size: Hits inspected to infer tabular headers

    Returns:
        The written path

    Raises:
        CodecError: If there is nothing to write to a tabular format, or on I/O failure
    """
    path = Path(path)
    fmt = FileFormat.parse(fmt)

    if fmt != FileFormat.JSON and not hits:
        raise CodecError("No data to export")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if fmt == FileFormat.JSON:
            _write_json(path, hits, selected_fields)
        else:
            headers = _table_headers(hits, selected_fields, sample_size)
            if fmt == FileFormat.CSV:
                _write_csv(path, hits, headers)
            else:
                _write_excel(path, hits, headers)
    except OSError as e:
        raise CodecError(f"Failed to write {path}: {e.strerror or e}") from e

    logger.debug("Wrote %d documents to %s", len(hits), path)
    return path
