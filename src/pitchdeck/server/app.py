"""
Tool server exposing record fetching, company lookup and deck assembly.

Every tool answers with text. Failures are logged and reported as prose so
the calling model can decide what to do next. Run over stdio with
``pitchdeck-server``.
"""

import json
import logging
from typing import Annotated, Callable, Optional

import httpx
from fastmcp import FastMCP
from pydantic import Field

from pitchdeck import __version__
from pitchdeck.config import ConfigurationError, configure_logging, get_settings
from pitchdeck.config.settings import AppSettings, StagingSettings
from pitchdeck.domain.company import CompanyRecord
from pitchdeck.server import descriptions
from pitchdeck.services.record_lookup import LookupStatus, lookup_company
from pitchdeck.services.record_store import RecordStore
from pitchdeck.services.slide_assembler import SlideAssembler

logger = logging.getLogger(__name__)

SERVER_NAME = "Pitch Deck Tool Server"


def fetch_via_staging(staging: StagingSettings) -> int:
    """
    Trigger the staging endpoint, which refreshes the CSV cache.

    Returns:
        Number of records the endpoint reported

    Raises:
        httpx.HTTPError: On connection failures or a non-2xx response
        ValueError: If the response body is not a JSON list
    """
    with httpx.Client(timeout=staging.request_timeout) as client:
        response = client.get(staging.url)
        response.raise_for_status()
        data = response.json()

    if not isinstance(data, list):
        raise ValueError(f"Unexpected response from {staging.url}: {data!r}")
    return len(data)


def create_server(
    settings: AppSettings,
    record_store: Optional[RecordStore] = None,
    assembler_factory: Optional[Callable[[], SlideAssembler]] = None,
) -> FastMCP:
    """
    Build the tool server and register its tools.

    Args:
        settings: Application settings
        record_store: Store used for in-process fetches and presentation ids
        assembler_factory: Returns an authenticated SlideAssembler per call

    Returns:
        Configured FastMCP server
    """
    store = record_store or RecordStore.from_settings(settings)
    make_assembler = assembler_factory or (lambda: SlideAssembler.from_settings(settings))
    cache_path = store.cache_path

    mcp = FastMCP(
        name=SERVER_NAME,
        instructions="Fetch Notion company records and turn one company into a Google Slides pitch deck.",
    )

    @mcp.tool(name="echo", description=descriptions.ECHO)
    def echo(message: Annotated[str, Field(description="Any user query")]) -> str:
        return message

    @mcp.tool(name="fetch-data", description=descriptions.FETCH_DATA)
    def fetch_data() -> str:
        try:
            if settings.staging.use_for_fetch:
                count = fetch_via_staging(settings.staging)
            else:
                count = len(store.refresh())
        except Exception as e:
            logger.error(f"fetch-data failed: {e}", exc_info=True)
            return f"There was an error in server tool 'fetch-data':\n{e}"

        return f"Successfully fetched {count} company records into '{cache_path}'."

    @mcp.tool(name="extract-company-data", description=descriptions.EXTRACT_COMPANY_DATA)
    def extract_company_data(
        companyName: Annotated[
            str,
            Field(
                description="The name of the company the user wants to create a "
                "Google Slides presentation for."
            ),
        ],
    ) -> str:
        if not companyName.strip():
            return "A company name is required to extract company data."

        try:
            result = lookup_company(companyName, cache_path)
        except Exception as e:
            logger.error(f"extract-company-data failed: {e}", exc_info=True)
            return f"An error occurred while extracting company data:\n{e}"

        if result.status is LookupStatus.NOT_STAGED:
            return "CSV file not found. Please run 'fetch-data' first."
        if result.status is LookupStatus.NOT_FOUND:
            return f"No company found with the name {companyName}"

        text = json.dumps(result.record.to_row())
        if result.match_count > 1:
            text += (
                f"\n\nNote: {result.match_count} companies are named "
                f"'{result.record.company_name}'; this is the first match."
            )
        return text

    @mcp.tool(name="create-presentation", description=descriptions.CREATE_PRESENTATION)
    def create_presentation(data: CompanyRecord) -> str:
        if not data.company_name.strip():
            return "The company data must include a companyName."

        try:
            deck = make_assembler().build_deck(data)
        except Exception as e:
            logger.error(f"create-presentation failed: {e}", exc_info=True)
            return f"Failed to create the presentation:\n{e}"

        try:
            store.attach_presentation(data.company_name, deck.presentation_id)
        except Exception:
            logger.warning(
                "Could not record presentation id in cache",
                extra={"company_name": data.company_name},
                exc_info=True,
            )

        return (
            f"Pitch deck created successfully for {data.company_name}.\n"
            f"presentationId: {deck.presentation_id}\n"
            f"URL: {deck.presentation_url}"
        )

    @mcp.tool(name="add-custom-slide", description=descriptions.ADD_CUSTOM_SLIDE)
    def add_custom_slide(
        slideTitle: Annotated[str, Field(description="The title of the new slide")],
        slideContent: Annotated[
            str, Field(description="The paragraph placed in the body of the slide")
        ],
        presentationId: Annotated[
            str, Field(description="The id of the presentation to add the slide to")
        ],
    ) -> str:
        if not presentationId.strip():
            return "A presentationId is required. Call 'create-presentation' first."

        try:
            slide_id = make_assembler().add_custom_slide(
                slideTitle, slideContent, presentationId
            )
        except Exception as e:
            logger.error(f"add-custom-slide failed: {e}", exc_info=True)
            return f"There was an error adding the custom slide:\n{e}"

        return f"Added slide '{slideTitle}' ({slide_id}) to presentation {presentationId.strip()}."

    return mcp


def main() -> None:
    """Run the tool server on stdio."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        raise SystemExit(f"Configuration error: {e}") from e

    configure_logging(settings.logging)
    logger.info("Pitch deck tool server running on stdio", extra={"version": __version__})
    create_server(settings).run()


if __name__ == "__main__":
    main()
