"""Record staging endpoint.

Fetches the Notion database, writes the CSV cache and returns the formatted
records as JSON.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from pitchdeck.config.settings import get_settings
from pitchdeck.services.record_store import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["records"])


def get_record_store() -> RecordStore:
    """Dependency providing a settings-backed RecordStore."""
    return RecordStore.from_settings(get_settings())


@router.get("/notion-data")
def notion_data(store: RecordStore = Depends(get_record_store)):
    """Fetch all company records, overwrite the CSV cache and return them."""
    try:
        records = store.refresh()
    except RecordStoreError as e:
        logger.error(f"Error fetching Notion data: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": f"Failed to fetch Notion data: {e}"},
        )

    return [record.to_row() for record in records]
