"""
Pytest configuration and shared fixtures.

This module provides fixtures that are available to all test modules.
"""

from pathlib import Path
from typing import Any, Optional
from unittest.mock import Mock

import pytest

from pitchdeck.config.settings import (
    AppSettings,
    GoogleSettings,
    LLMSettings,
    LoggingSettings,
    NotionSettings,
    RecordSettings,
    StagingSettings,
    get_settings,
)
from pitchdeck.domain.company import CompanyRecord


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """
    Clear settings cache before each test.

    This ensures each test gets fresh settings.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def notion_page(
    name: str,
    *,
    location: str = "San Francisco, CA",
    founded_year: Optional[float] = 2015,
    arr: Optional[float] = 1200000,
    industry: Optional[str] = "Fintech",
    burn_rate: Optional[float] = 85000.5,
    exit_strategy: Optional[str] = "IPO",
    deal_status: Optional[str] = "Due Diligence",
    funding_stage: Optional[str] = "Series B",
    investment_amount: Optional[float] = 5000000,
    investment_date: Optional[str] = "2023-04-01",
    key_metrics: str = "Net revenue retention of 130%",
) -> dict[str, Any]:
    """Build a Notion page object the way ``databases.query`` returns it."""

    def text(kind: str, value: str) -> dict[str, Any]:
        items = [{"plain_text": value, "type": "text"}] if value else []
        return {"type": kind, kind: items}

    def select(value: Optional[str]) -> dict[str, Any]:
        return {"type": "select", "select": {"name": value} if value else None}

    return {
        "object": "page",
        "id": f"page-{name.lower()}",
        "properties": {
            "Company Name": text("title", name),
            "Location": text("rich_text", location),
            "Founded Year": {"type": "number", "number": founded_year},
            "ARR": {"type": "number", "number": arr},
            "Industry": select(industry),
            "Burn Rate": {"type": "number", "number": burn_rate},
            "Exit Strategy": select(exit_strategy),
            "Deal Status": select(deal_status),
            "Funding Stage": select(funding_stage),
            "Investment Amount": {"type": "number", "number": investment_amount},
            "Investment Date": {
                "type": "date",
                "date": {"start": investment_date} if investment_date else None,
            },
            "Key Metrics": text("rich_text", key_metrics),
        },
    }


@pytest.fixture
def acme_page() -> dict[str, Any]:
    return notion_page("Acme")


@pytest.fixture
def globex_page() -> dict[str, Any]:
    return notion_page(
        "Globex",
        location="Berlin, Germany",
        founded_year=2011,
        arr=None,
        industry="Logistics",
        exit_strategy=None,
        investment_date=None,
        key_metrics="",
    )


@pytest.fixture
def acme_record() -> CompanyRecord:
    return CompanyRecord(
        company_name="Acme",
        location="San Francisco, CA",
        founded_year=2015,
        arr=1200000,
        industry="Fintech",
        burn_rate=85000.5,
        exit_strategy="IPO",
        deal_status="Due Diligence",
        funding_stage="Series B",
        investment_amount=5000000,
        investment_date="2023-04-01",
        key_metrics="Net revenue retention of 130%",
    )


class FakeRequest:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeSlidesService:
    """In-memory stand-in for ``build("slides", "v1")``.

    New slides get two shape placeholders, like the TITLE_AND_BODY layout.
    """

    def __init__(self, placeholders: int = 2):
        self.placeholders = placeholders
        self.decks: dict[str, list[dict[str, Any]]] = {}
        self.created: list[dict[str, Any]] = []
        self.batches: list[list[dict[str, Any]]] = []

    def presentations(self):
        return self

    def _slide(self, slide_id: str) -> dict[str, Any]:
        return {
            "objectId": slide_id,
            "pageElements": [
                {"objectId": f"{slide_id}_ph{i}", "shape": {"shapeType": "TEXT_BOX"}}
                for i in range(self.placeholders)
            ],
        }

    def create(self, body):
        def run():
            presentation_id = f"pres-{len(self.decks) + 1}"
            self.created.append(body)
            self.decks[presentation_id] = [self._slide("title")]
            return {"presentationId": presentation_id}

        return FakeRequest(run)

    def get(self, presentationId):
        return FakeRequest(lambda: {"slides": list(self.decks[presentationId])})

    def batchUpdate(self, presentationId, body):
        def run():
            self.batches.append(body["requests"])
            for request in body["requests"]:
                if "createSlide" in request:
                    self.decks[presentationId].append(
                        self._slide(request["createSlide"]["objectId"])
                    )
            return {"replies": []}

        return FakeRequest(run)

    def requests_of(self, kind: str) -> list[dict[str, Any]]:
        return [r[kind] for batch in self.batches for r in batch if kind in r]


@pytest.fixture
def slides_service() -> FakeSlidesService:
    return FakeSlidesService()


@pytest.fixture
def mock_notion_client():
    """
    Notion client whose database query returns a single page of results.

    Set ``client.pages`` to the list of page objects to return.
    """
    client = Mock()
    client.pages = []

    def query(**kwargs):
        return {"results": list(client.pages), "has_more": False, "next_cursor": None}

    client.databases.query = Mock(side_effect=query)
    return client


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "notion-data.csv"


@pytest.fixture
def test_settings(cache_path: Path, tmp_path: Path) -> AppSettings:
    """Settings built directly, without reading the YAML files."""
    return AppSettings(
        notion_api_key="secret_test",
        notion=NotionSettings(database_id="db-123"),
        records=RecordSettings(cache_path=cache_path),
        staging=StagingSettings(use_for_fetch=False),
        google=GoogleSettings(
            credentials_path=tmp_path / "credentials.json",
            token_path=tmp_path / "token.json",
        ),
        llm=LLMSettings(endpoint="test-endpoint", max_tool_rounds=5),
        logging=LoggingSettings(level="DEBUG"),
        prompts={"system_prompt": "You build pitch decks."},
    )


@pytest.fixture
def make_page():
    """Factory for Notion page objects."""
    return notion_page
