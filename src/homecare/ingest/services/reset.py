"""
Collection reset for full-refresh imports.

Deletes every document of a collection in batches before the new data set
is written, so the collection ends up holding exactly the imported rows.
"""

from loguru import logger

from homecare.core.store import MAX_BATCH_SIZE, DocumentStore, WriteOperation
from homecare.ingest.services.writer import chunked


def clear_collection(
    store: DocumentStore, collection: str, batch_size: int = MAX_BATCH_SIZE
) -> int:
    """
    Delete all documents in a collection.

    Returns only after the last delete batch has committed. Running it on an
    empty collection does nothing.

    Args:
        store: Target store
        collection: Collection to empty
        batch_size: Deletes per atomic batch (at most MAX_BATCH_SIZE)

    Returns:
        Number of documents deleted

    Raises:
        CommitError: If a delete batch is rejected
    """
    doc_ids = [doc_id for doc_id, _ in store.list_documents(collection)]
    total = len(doc_ids)
    if total == 0:
        logger.info(f"Collection '{collection}' is already empty")
        return 0

    logger.info(f"Clearing {total} documents from '{collection}'")
    deleted = 0
    for chunk in chunked(doc_ids, min(batch_size, MAX_BATCH_SIZE)):
        store.commit_batch([WriteOperation.delete(collection, doc_id) for doc_id in chunk])
        deleted += len(chunk)
        logger.info(f"Deleted {deleted}/{total} documents from '{collection}'")

    return deleted
