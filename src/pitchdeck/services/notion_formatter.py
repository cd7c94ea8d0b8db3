"""
Normalization of raw Notion database pages into CompanyRecord objects.

Each Notion property arrives as a typed wrapper (title, rich_text, select,
number, date). Missing or empty properties fall back to "" for text and 0 for
numbers.
"""

from typing import Any, Mapping, Optional

from pitchdeck.domain.company import CompanyRecord

# Notion column name for each CompanyRecord field
PROPERTY_NAMES: dict[str, str] = {
    "company_name": "Company Name",
    "location": "Location",
    "founded_year": "Founded Year",
    "arr": "ARR",
    "industry": "Industry",
    "burn_rate": "Burn Rate",
    "exit_strategy": "Exit Strategy",
    "deal_status": "Deal Status",
    "funding_stage": "Funding Stage",
    "investment_amount": "Investment Amount",
    "investment_date": "Investment Date",
    "key_metrics": "Key Metrics",
}


class RecordFormatError(Exception):
    """Raised when a Notion page cannot be normalized."""

    pass


def _first_plain_text(items: Any) -> str:
    if isinstance(items, list) and items:
        first = items[0]
        if isinstance(first, Mapping):
            return first.get("plain_text") or ""
    return ""


def get_title(prop: Optional[Mapping[str, Any]]) -> str:
    return _first_plain_text(prop.get("title")) if prop else ""


def get_rich_text(prop: Optional[Mapping[str, Any]]) -> str:
    return _first_plain_text(prop.get("rich_text")) if prop else ""


def get_select(prop: Optional[Mapping[str, Any]]) -> str:
    if not prop or not isinstance(prop.get("select"), Mapping):
        return ""
    return prop["select"].get("name") or ""


def get_number(prop: Optional[Mapping[str, Any]]) -> float:
    if not prop:
        return 0
    value = prop.get("number")
    # bool is an int subclass; Notion never sends it for number properties
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return 0


def get_date(prop: Optional[Mapping[str, Any]]) -> str:
    if not prop or not isinstance(prop.get("date"), Mapping):
        return ""
    return prop["date"].get("start") or ""


def parse_notion_page(page: Mapping[str, Any]) -> CompanyRecord:
    """
    Format one Notion page (database row) into a CompanyRecord.

    Args:
        page: Page object as returned by ``databases.query``

    Returns:
        Normalized CompanyRecord without a presentation id

    Raises:
        RecordFormatError: If the page has no properties mapping
    """
    props = page.get("properties")
    if not isinstance(props, Mapping):
        raise RecordFormatError(
            f"Notion page {page.get('id', '<unknown>')} has no properties"
        )

    def prop(field: str) -> Optional[Mapping[str, Any]]:
        return props.get(PROPERTY_NAMES[field])

    try:
        return CompanyRecord(
            company_name=get_title(prop("company_name")),
            location=get_rich_text(prop("location")),
            founded_year=get_number(prop("founded_year")),
            arr=get_number(prop("arr")),
            industry=get_select(prop("industry")),
            burn_rate=get_number(prop("burn_rate")),
            exit_strategy=get_select(prop("exit_strategy")),
            deal_status=get_select(prop("deal_status")),
            funding_stage=get_select(prop("funding_stage")),
            investment_amount=get_number(prop("investment_amount")),
            investment_date=get_date(prop("investment_date")),
            key_metrics=get_rich_text(prop("key_metrics")),
        )
    except ValueError as e:
        raise RecordFormatError(
            f"Failed to format Notion page {page.get('id', '<unknown>')}: {e}"
        ) from e
