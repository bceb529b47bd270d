"""
Flow layer type definitions for bulk import and export.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class FileFormat(str, Enum):
    """Supported import/export file formats."""
    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"

    @classmethod
    def parse(cls, value: Any) -> "FileFormat":
        """Accept enum members, values and common aliases ("xlsx", "ndjson")."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        aliases = {"xlsx": "excel", "ndjson": "json", "jsonl": "json"}
        text = aliases.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Unsupported file format: {value}") from None

    @property
    def extension(self) -> str:
        return ".xlsx" if self == FileFormat.EXCEL else f".{self.value}"


class BulkAction(str, Enum):
    """Bulk API verbs."""
    INDEX = "index"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class BulkOperation:
    """One instruction of a bulk request."""
    action: BulkAction
    index: str
    id: Optional[str] = None
    document: Optional[Dict[str, Any]] = None

    def to_lines(self) -> List[str]:
        """Render as NDJSON lines: action metadata, then the source line if any."""
        meta: Dict[str, Any] = {"_index": self.index}
        if self.id is not None:
            meta["_id"] = self.id
        lines = [json.dumps({self.action.value: meta}, ensure_ascii=False)]

        if self.action == BulkAction.DELETE:
            return lines
        if self.action == BulkAction.UPDATE:
            lines.append(json.dumps({"doc": self.document or {}}, ensure_ascii=False))
        else:
            lines.append(json.dumps(self.document or {}, ensure_ascii=False))
        return lines

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BulkOperation":
        return cls(
            action=BulkAction(str(data["action"]).lower()),
            index=data["index"],
            id=data.get("id"),
            document=data.get("document"),
        )


@dataclass
class ImportOptions:
    """Per-run import settings."""
    id_field: Optional[str] = None
    overwrite_existing: bool = False
    batch_size: Optional[int] = None
    create_index: bool = False
    mapping: Optional[Dict[str, Any]] = None

    @property
    def action(self) -> BulkAction:
        return BulkAction.INDEX if self.overwrite_existing else BulkAction.CREATE


@dataclass
class ImportRequest:
    """A file-to-cluster import."""
    index: str
    file_path: str
    format: FileFormat = FileFormat.JSON
    options: ImportOptions = field(default_factory=ImportOptions)


@dataclass(frozen=True)
class ImportFailure:
    """A document that was not imported."""
    line_number: int
    error_message: str
    document: Optional[Dict[str, Any]] = None
    batch_number: Optional[int] = None
    batch_position: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_number": self.line_number,
            "batch_number": self.batch_number,
            "batch_position": self.batch_position,
            "error_message": self.error_message,
            "document": self.document,
        }


@dataclass(frozen=True)
class BatchProgress:
    """Running totals reported after each batch."""
    batch_number: int
    batch_size: int
    total_processed: int
    successful_imports: int
    failed_imports: int


@dataclass(frozen=True)
class BatchOutcome:
    """Summary of one import run."""
    total_processed: int
    successful_imports: int
    failed_imports: int
    errors: Tuple[ImportFailure, ...] = ()
    batches: int = 0

    @property
    def success(self) -> bool:
        return self.failed_imports == 0

    @property
    def message(self) -> str:
        if self.success:
            return f"Successfully imported {self.successful_imports} documents"
        return (
            f"Imported {self.successful_imports} documents "
            f"with {self.failed_imports} errors"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "total_processed": self.total_processed,
            "successful_imports": self.successful_imports,
            "failed_imports": self.failed_imports,
            "batches": self.batches,
            "errors": [failure.to_dict() for failure in self.errors],
            "message": self.message,
        }


@dataclass
class ExportRequest:
    """A cluster-to-file export."""
    index: str
    filename: str
    format: FileFormat = FileFormat.JSON
    query: Dict[str, Any] = field(default_factory=lambda: {"match_all": {}})
    sort: Optional[List[Dict[str, Any]]] = None
    selected_fields: Optional[List[str]] = None
    max_records: Optional[int] = None
    page_size: Optional[int] = None


@dataclass
class ExportPage:
    """Documents gathered by the pagination loop."""
    documents: List[Dict[str, Any]]
    pages_fetched: int


@dataclass
class ExportResult:
    """Summary of one export run."""
    success: bool
    file_path: Optional[str]
    total_records: int
    pages_fetched: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "file_path": self.file_path,
            "total_records": self.total_records,
            "pages_fetched": self.pages_fetched,
            "message": self.message,
        }
