"""Company lookup against the staged CSV cache."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pitchdeck.domain.company import CompanyRecord, normalize_company_name
from pitchdeck.services.record_store import RecordStoreError, read_cache

logger = logging.getLogger(__name__)


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_STAGED = "not_staged"


@dataclass(frozen=True)
class LookupResult:
    status: LookupStatus
    record: Optional[CompanyRecord] = None
    match_count: int = 0

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


def lookup_company(company_name: str, cache_path: Path) -> LookupResult:
    """
    Find a company in the cache by case-insensitive, trimmed name.

    The cache is never fetched implicitly: a missing file yields a
    ``NOT_STAGED`` result. When several rows share the name, the first one is
    returned and ``match_count`` reports how many matched.

    Args:
        company_name: Name as typed by the user or model
        cache_path: Location of the CSV cache

    Returns:
        LookupResult describing the outcome

    Raises:
        RecordStoreError: If the cache exists but cannot be parsed
    """
    try:
        df = read_cache(Path(cache_path))
    except FileNotFoundError:
        logger.info("Record cache not staged", extra={"path": str(cache_path)})
        return LookupResult(status=LookupStatus.NOT_STAGED)

    if "companyName" not in df.columns:
        raise RecordStoreError(f"Cache file {cache_path} has no companyName column")

    target = normalize_company_name(company_name)
    matches = df[df["companyName"].map(normalize_company_name) == target]

    if matches.empty:
        return LookupResult(status=LookupStatus.NOT_FOUND)

    if len(matches) > 1:
        logger.warning(
            "Multiple cached rows share a company name; using the first",
            extra={"company_name": company_name, "match_count": len(matches)},
        )

    try:
        record = CompanyRecord.model_validate(matches.iloc[0].to_dict())
    except ValueError as e:
        raise RecordStoreError(f"Invalid cached row for {company_name!r}: {e}") from e

    return LookupResult(
        status=LookupStatus.FOUND,
        record=record,
        match_count=len(matches),
    )
