"""
Flow for importing documents into an index in fixed-size bulk batches.

Batches run strictly in input order. A failed document, or a failed batch,
is recorded in the outcome and the run moves on; only an unreadable input
file aborts it.
"""

import logging
from itertools import islice
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from config.environments import get_defaults
from mcp_types.flows import (
    BatchOutcome,
    BatchProgress,
    BulkOperation,
    ImportFailure,
    ImportOptions,
    ImportRequest,
)
from utils.codec import ImportItem, RecordError, get_document_value, iter_documents
from utils.errors import ElasticOperationError
from utils.query_builder import build_bulk_body
from utils.response_parser import parse_bulk_item
from utils.transport import TransportClient
from utils.validation import validate_index_name, validate_size


logger = logging.getLogger(__name__)

NO_RESULT_MESSAGE = "No result returned for document"

ProgressCallback = Callable[[BatchProgress], None]


def extract_document_id(document: Dict[str, Any], id_field: Optional[str]) -> Optional[str]:
    """
    Read a document id from `id_field` (dot paths allowed).

    Only string and integer values are usable ids; anything else leaves the
    id to the cluster.
    """
    if not id_field:
        return None
    value = get_document_value(document, id_field)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


def _create_index_body(mapping: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not mapping:
        return {}
    if "mappings" in mapping or "settings" in mapping:
        return mapping
    return {"mappings": mapping}


def _precreate_index(client: TransportClient, index: str, mapping: Optional[Dict[str, Any]]) -> None:
    try:
        client.create_index(index, _create_index_body(mapping))
        logger.info("Created index %s before import", index)
    except ElasticOperationError as e:
        # Usually "already exists"; the import goes ahead either way.
        logger.warning("Could not create index %s, continuing import: %s", index, e)


def _process_batch(
    client: TransportClient,
    index: str,
    options: ImportOptions,
    batch: List[ImportItem],
    batch_number: int,
    offset: int,
) -> Tuple[int, List[ImportFailure]]:
    """
    Submit one batch.

    Args:
        client: Connection client
        index: Target index
        options: Import options
        batch: Documents and RecordErrors, in input order
        batch_number: 1-based batch number
        offset: Number of input items before this batch

    Returns:
        (documents imported, failures ordered by input position)
    """
    failures: List[ImportFailure] = []
    pending: List[Tuple[int, Dict[str, Any], BulkOperation]] = []
    action = options.action

    for position, item in enumerate(batch, start=1):
        if isinstance(item, RecordError):
            failures.append(ImportFailure(
                line_number=offset + position,
                error_message=item.message,
                document=None,
                batch_number=batch_number,
                batch_position=position,
            ))
            continue
        operation = BulkOperation(
            action=action,
            index=index,
            id=extract_document_id(item, options.id_field),
            document=item,
        )
        pending.append((position, item, operation))

    if not pending:
        return 0, failures

    try:
        items = client.bulk(build_bulk_body(operation for _, _, operation in pending))
    except ElasticOperationError as e:
        logger.error("Bulk batch %d failed entirely: %s", batch_number, e)
        failures.extend(
            ImportFailure(
                line_number=offset + position,
                error_message=f"Bulk request failed: {e}",
                document=document,
                batch_number=batch_number,
                batch_position=position,
            )
            for position, document, _ in pending
        )
        failures.sort(key=lambda failure: failure.line_number)
        return 0, failures

    succeeded = 0
    for slot, (position, document, _) in enumerate(pending):
        if slot < len(items):
            ok, reason = parse_bulk_item(items[slot])
        else:
            ok, reason = False, NO_RESULT_MESSAGE

        if ok:
            succeeded += 1
        else:
            failures.append(ImportFailure(
                line_number=offset + position,
                error_message=reason or "Unknown error",
                document=document,
                batch_number=batch_number,
                batch_position=position,
            ))

    failures.sort(key=lambda failure: failure.line_number)
    return succeeded, failures


def run_import(
    client: TransportClient,
    source_documents: Iterable[ImportItem],
    index: str,
    options: Optional[ImportOptions] = None,
    progress: Optional[ProgressCallback] = None,
) -> BatchOutcome:
    """
    Import documents in consecutive bulk batches.

    The source is consumed lazily, one batch at a time, so at most one
    batch of documents is held in memory.

    Args:
        client: Connection client
        source_documents: Documents, or RecordErrors for unparseable records
        index: Target index
        options: Import options (defaults when None)
        progress: Called with running totals after every batch

    Returns:
        BatchOutcome with counts and every failure in input order

    Raises:
        ValueError: If the index name is invalid
        CodecError: If the source stops being readable as a whole
    """
    options = options or ImportOptions()
    validate_index_name(index)

    defaults = get_defaults()
    batch_size = validate_size(options.batch_size, defaults["batch_size"], defaults["max_batch_size"])

    if options.create_index:
        _precreate_index(client, index, options.mapping)

    documents = iter(source_documents)
    total_processed = 0
    successful = 0
    failures: List[ImportFailure] = []
    batch_number = 0

    while True:
        batch = list(islice(documents, batch_size))
        if not batch:
            break
        batch_number += 1

        logger.debug("Importing batch %d (%d documents) into %s", batch_number, len(batch), index)
        succeeded, batch_failures = _process_batch(
            client, index, options, batch, batch_number, total_processed,
        )

        total_processed += len(batch)
        successful += succeeded
        failures.extend(batch_failures)

        if progress is not None:
            progress(BatchProgress(
                batch_number=batch_number,
                batch_size=len(batch),
                total_processed=total_processed,
                successful_imports=successful,
                failed_imports=len(failures),
            ))

    outcome = BatchOutcome(
        total_processed=total_processed,
        successful_imports=successful,
        failed_imports=len(failures),
        errors=tuple(failures),
        batches=batch_number,
    )
    logger.info(
        "Import into %s finished: %d processed, %d imported, %d failed",
        index, outcome.total_processed, outcome.successful_imports, outcome.failed_imports,
    )
    return outcome


def import_file(
    client: TransportClient,
    request: ImportRequest,
    progress: Optional[ProgressCallback] = None,
) -> BatchOutcome:
    """
    Import a JSON, NDJSON, CSV or XLSX file.

    Args:
        client: Connection client
        request: File, format, target index and options
        progress: Optional per-batch callback

    Returns:
        BatchOutcome for the run

    Raises:
        CodecError: If the file cannot be opened or its structure is unreadable
    """
    validate_index_name(request.index)
    documents = iter_documents(request.file_path, request.format)
    logger.info("Importing %s into %s", request.file_path, request.index)
    return run_import(client, documents, request.index, request.options, progress)
