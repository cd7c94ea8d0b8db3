"""
Record Store Bridge between the Notion database and the flat CSV cache.

Fetches every row of the configured database, normalizes each page with the
formatter, and persists the result as ``notion-data.csv`` (overwriting).
"""

import logging
from pathlib import Path
from typing import Callable, Optional

import pandas as pd
from notion_client import Client
from notion_client.helpers import collect_paginated_api

from pitchdeck.config.settings import AppSettings
from pitchdeck.domain.company import CSV_COLUMNS, CompanyRecord, normalize_company_name
from pitchdeck.services.notion_formatter import parse_notion_page

logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """Raised when records cannot be fetched, written or read."""

    pass


def write_cache(records: list[CompanyRecord], cache_path: Path) -> None:
    """Overwrite the CSV cache with the given records."""
    df = pd.DataFrame([record.to_row() for record in records], columns=CSV_COLUMNS)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(cache_path, index=False)


def read_cache(cache_path: Path) -> pd.DataFrame:
    """
    Load the CSV cache as strings.

    Raises:
        FileNotFoundError: If the cache has not been written yet
        RecordStoreError: If the file exists but cannot be parsed
    """
    if not cache_path.exists():
        raise FileNotFoundError(cache_path)
    try:
        return pd.read_csv(cache_path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=CSV_COLUMNS)
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise RecordStoreError(f"Failed to parse cache file {cache_path}: {e}") from e


class RecordStore:
    """Fetches company rows from Notion and manages the CSV cache."""

    def __init__(
        self,
        api_key: str,
        database_id: str,
        cache_path: Path,
        client_factory: Optional[Callable[[str], Client]] = None,
    ):
        self.api_key = api_key
        self.database_id = database_id
        self.cache_path = Path(cache_path)
        self._client_factory = client_factory or (lambda key: Client(auth=key))
        self._client: Optional[Client] = None

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "RecordStore":
        return cls(
            api_key=settings.notion_api_key,
            database_id=settings.notion.database_id,
            cache_path=settings.records.cache_path,
        )

    @property
    def client(self) -> Client:
        if self._client is None:
            if not self.api_key or not self.database_id:
                raise RecordStoreError("Notion API Key or DatabaseId not set")
            self._client = self._client_factory(self.api_key)
        return self._client

    def fetch_records(self) -> list[CompanyRecord]:
        """
        Query every page of the Notion database and normalize each row.

        Returns:
            Formatted records in database order

        Raises:
            RecordStoreError: On missing credentials, API, network or formatting errors
        """
        client = self.client

        try:
            pages = collect_paginated_api(
                client.databases.query, database_id=self.database_id
            )
            records = [parse_notion_page(page) for page in pages]
        except Exception as e:
            raise RecordStoreError(f"Error fetching Notion data: {e}") from e

        logger.info(
            "Fetched Notion records",
            extra={"database_id": self.database_id, "record_count": len(records)},
        )
        return records

    def refresh(self) -> list[CompanyRecord]:
        """Fetch all records and overwrite the CSV cache with them."""
        records = self.fetch_records()
        try:
            write_cache(records, self.cache_path)
        except OSError as e:
            raise RecordStoreError(
                f"Failed to write cache file {self.cache_path}: {e}"
            ) from e

        logger.info(
            "Wrote record cache",
            extra={"path": str(self.cache_path), "record_count": len(records)},
        )
        return records

    def read_records(self) -> list[CompanyRecord]:
        """
        Load the cached records.

        Raises:
            FileNotFoundError: If the cache has not been staged
            RecordStoreError: If a cached row is invalid
        """
        df = read_cache(self.cache_path)
        try:
            return [CompanyRecord.model_validate(row) for row in df.to_dict(orient="records")]
        except ValueError as e:
            raise RecordStoreError(f"Invalid row in cache file {self.cache_path}: {e}") from e

    def attach_presentation(self, company_name: str, presentation_id: str) -> int:
        """
        Record the presentation id on the cached row(s) for a company.

        Returns:
            Number of rows updated (0 when the cache is missing or has no match)
        """
        try:
            df = read_cache(self.cache_path)
        except FileNotFoundError:
            return 0

        if "presentationId" not in df.columns:
            df["presentationId"] = ""

        key = normalize_company_name(company_name)
        mask = df["companyName"].map(normalize_company_name) == key
        updated = int(mask.sum())
        if updated:
            df.loc[mask, "presentationId"] = presentation_id
            df.to_csv(self.cache_path, index=False)
            logger.info(
                "Attached presentation to cached record",
                extra={"company_name": company_name, "presentation_id": presentation_id},
            )
        return updated
