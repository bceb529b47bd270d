"""
Flow for exporting search results to a file.

Documents are gathered with `from`/`size` paging and then written through
the codec in one pass.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.environments import MAX_RESULT_WINDOW, get_defaults, get_export_directory
from mcp_types.flows import ExportPage, ExportRequest, ExportResult, FileFormat
from tools.primitives.search import search_documents
from utils.codec import write_documents
from utils.transport import TransportClient
from utils.validation import validate_index_pattern, validate_size


logger = logging.getLogger(__name__)


def collect_documents(
    client: TransportClient,
    index: str,
    query: Optional[Dict[str, Any]] = None,
    max_records: Optional[int] = None,
    page_size: Optional[int] = None,
    sort: Optional[List[Dict[str, Any]]] = None,
) -> ExportPage:
    """
    Page through a search until the cap or the end of the results.

    Each request asks for `min(page_size, remaining)` hits and `from`
    advances by the number actually returned. The loop stops when the cap
    is reached, when a page is short, or when a page is empty.

    Args:
        client: Connection client
        index: Index pattern to read
        query: Query DSL (match_all when None)
        max_records: Maximum documents to collect
        page_size: Hits requested per page

    Returns:
        ExportPage with the hits and the number of requests issued
    """
    validate_index_pattern(index)
    defaults = get_defaults()

    if max_records is None:
        max_records = defaults["max_export_records"]
    max_records = max(0, int(max_records))
    page_size = validate_size(page_size, defaults["page_size"], defaults["max_page_size"])

    documents: List[Dict[str, Any]] = []
    pages = 0

    while len(documents) < max_records:
        size = min(page_size, max_records - len(documents))
        if len(documents) + size > MAX_RESULT_WINDOW:
            logger.warning(
                "Export of %s stopped at %d documents: from/size paging is limited to %d hits",
                index, len(documents), MAX_RESULT_WINDOW,
            )
            break

        response = search_documents(
            client,
            index=index,
            query=query,
            size=size,
            from_=len(documents),
            sort=sort,
            track_total_hits=False,
        )
        pages += 1
        hits = response.hits
        logger.debug("Export page %d of %s returned %d hits", pages, index, len(hits))

        if not hits:
            break
        documents.extend(hits[:size])
        if len(hits) < size:
            break

    return ExportPage(documents=documents, pages_fetched=pages)


def resolve_export_path(filename: str, fmt: FileFormat) -> Path:
    """
    Place an export file inside the export directory.

    Only the final path component of `filename` is used; the format's
    extension is appended when the name has none.
    """
    name = Path(filename or "").name
    if not name:
        raise ValueError("Export filename cannot be empty")
    if not Path(name).suffix:
        name += fmt.extension
    return Path(get_export_directory()) / name


def run_export(client: TransportClient, request: ExportRequest) -> ExportResult:
    """
    Export the documents matching a query.

    Args:
        client: Connection client
        request: Index, query, output file and format, field selection, caps

    Returns:
        ExportResult; `success` is False when nothing matched and no file is written

    Raises:
        CodecError: If the output file cannot be written
        ElasticOperationError: If a search request fails
    """
    fmt = FileFormat.parse(request.format)
    target = resolve_export_path(request.filename, fmt)

    page = collect_documents(
        client,
        index=request.index,
        query=request.query,
        max_records=request.max_records,
        page_size=request.page_size,
        sort=request.sort,
    )

    if not page.documents:
        logger.info("Export of %s matched no documents", request.index)
        return ExportResult(
            success=False,
            file_path=None,
            total_records=0,
            pages_fetched=page.pages_fetched,
            message="No documents matched the query",
        )

    write_documents(
        target,
        page.documents,
        fmt,
        selected_fields=request.selected_fields,
        sample_size=get_defaults()["csv_header_sample"],
    )

    total = len(page.documents)
    logger.info("Exported %d documents from %s to %s", total, request.index, target)
    return ExportResult(
        success=True,
        file_path=str(target),
        total_records=total,
        pages_fetched=page.pages_fetched,
        message=f"Exported {total} documents to {target}",
    )
