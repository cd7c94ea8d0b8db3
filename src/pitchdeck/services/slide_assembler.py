"""
Slide deck assembly against the Google Slides API.

A deck for one company is built in a fixed order: the presentation itself
(with its auto-generated title slide filled in), a bulleted General Summary
slide, a bulleted Investment Details slide, and a free-text Key Metrics slide.
Each step depends on the previous one succeeding; a failure part-way leaves
the partially built deck in place.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

from googleapiclient.errors import HttpError

from pitchdeck.config.settings import AppSettings, SlideStyleSettings
from pitchdeck.domain.company import CompanyRecord
from pitchdeck.services.google_slides_auth import GoogleSlidesAuth

logger = logging.getLogger(__name__)

PRESENTATION_URL = "https://docs.google.com/presentation/d/{presentation_id}/edit"


class SlideAssemblyError(Exception):
    """Raised when a Google Slides request fails."""

    pass


class MalformedLayoutError(SlideAssemblyError):
    """Raised when a slide does not expose the expected two placeholders."""

    pass


@dataclass
class DeckResult:
    """Identifiers produced by building a deck."""

    presentation_id: str
    presentation_url: str
    slide_ids: list[str] = field(default_factory=list)


def format_value(value: Any) -> str:
    """Render a record value for a bullet, dropping a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def general_summary_items(record: CompanyRecord) -> list[tuple[str, Any]]:
    return [
        ("Founded Year", record.founded_year),
        ("ARR", record.arr),
        ("Industry", record.industry),
        ("Burn Rate", record.burn_rate),
        ("Exit Strategy", record.exit_strategy),
    ]


def investment_details_items(record: CompanyRecord) -> list[tuple[str, Any]]:
    return [
        ("Deal Status", record.deal_status),
        ("Funding Stage", record.funding_stage),
        ("Investment Amount", record.investment_amount),
        ("Investment Date", record.investment_date),
    ]


def placeholder_ids(slide: Optional[dict[str, Any]]) -> tuple[str, str]:
    """
    Resolve the (title, body) placeholder ids of a slide by position.

    Raises:
        MalformedLayoutError: If the slide is missing or does not hold exactly
            two shape elements with object ids
    """
    if not slide:
        raise MalformedLayoutError("Slide not found in presentation")

    elements = slide.get("pageElements") or []
    if len(elements) != 2:
        raise MalformedLayoutError(
            f"Slide {slide.get('objectId')} has {len(elements)} page elements, expected 2"
        )

    ids = []
    for element in elements:
        if "shape" not in element or not element.get("objectId"):
            raise MalformedLayoutError(
                f"Slide {slide.get('objectId')} has a non-placeholder element"
            )
        ids.append(element["objectId"])

    return ids[0], ids[1]


def new_object_id() -> str:
    # Slides object ids must be 5-50 characters from [a-zA-Z0-9_-:]
    return f"slide_{uuid.uuid4().hex[:12]}"


class SlideAssembler:
    """Builds company pitch decks with a Google Slides service object."""

    def __init__(
        self,
        slides_service,
        style: Optional[SlideStyleSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.service = slides_service
        self.style = style or SlideStyleSettings()
        self._today = today

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        auth: Optional[GoogleSlidesAuth] = None,
    ) -> "SlideAssembler":
        """Authenticate and build an assembler from application settings.

        Raises:
            GoogleSlidesAuthError: If no valid Google credentials are available
        """
        auth = auth or GoogleSlidesAuth(
            credentials_path=str(settings.google.credentials_path),
            token_path=str(settings.google.token_path),
        )
        return cls(auth.build_slides_service(), style=settings.slides)

    # -- Public API --------------------------------------------------------

    def build_deck(self, record: CompanyRecord) -> DeckResult:
        """
        Create a full pitch deck for one company.

        Returns:
            DeckResult with the presentation id and the three content slide ids
        """
        presentation_id = self.create_presentation(record)

        slide_ids = [
            self.add_bullet_slide(
                presentation_id, "General Summary", general_summary_items(record)
            ),
            self.add_bullet_slide(
                presentation_id, "Investment Details", investment_details_items(record)
            ),
            self.add_paragraph_slide(presentation_id, "Key Metrics", record.key_metrics),
        ]

        result = DeckResult(
            presentation_id=presentation_id,
            presentation_url=PRESENTATION_URL.format(presentation_id=presentation_id),
            slide_ids=slide_ids,
        )
        logger.info(
            "Created presentation",
            extra={
                "company_name": record.company_name,
                "presentation_id": presentation_id,
                "slide_count": len(slide_ids) + 1,
            },
        )
        return result

    def add_custom_slide(self, title: str, content: str, presentation_id: str) -> str:
        """
        Append one free-text slide to an existing presentation.

        Returns:
            Object id of the new slide
        """
        if not presentation_id or not presentation_id.strip():
            raise SlideAssemblyError("A presentationId is required to add a slide")
        return self.add_paragraph_slide(presentation_id.strip(), title, content)

    # -- Deck steps --------------------------------------------------------

    def create_presentation(self, record: CompanyRecord) -> str:
        """Create the presentation and fill in its title slide."""
        presentation = self._execute(
            self.service.presentations().create(
                body={"title": f"{record.company_name} Slide Deck"}
            ),
            "create presentation",
        )
        presentation_id = presentation.get("presentationId")
        if not presentation_id:
            raise SlideAssemblyError("Presentation was created without a presentationId")

        slides = self._get_slides(presentation_id)
        title_id, subtitle_id = placeholder_ids(slides[0] if slides else None)

        subtitle = f"{record.location}\nCreated: {self._today().isoformat()}"
        requests = self._insert_text(title_id, record.company_name)
        requests += self._insert_text(subtitle_id, subtitle)
        self._batch_update(presentation_id, requests, "fill title slide")

        return presentation_id

    def add_bullet_slide(
        self,
        presentation_id: str,
        title: str,
        items: list[tuple[str, Any]],
    ) -> str:
        """Append a slide whose body is a bulleted ``Label: value`` list."""
        body = "\n".join(f"{label}: {format_value(value)}" for label, value in items)
        slide_id, title_id, body_id = self._create_slide(presentation_id)

        requests = self._title_requests(title_id, title)
        requests += self._insert_text(body_id, body)
        if body:
            requests.append(
                {
                    "createParagraphBullets": {
                        "objectId": body_id,
                        "textRange": {"type": "ALL"},
                        "bulletPreset": self.style.bullet_preset,
                    }
                }
            )
        self._batch_update(presentation_id, requests, f"fill slide '{title}'")
        return slide_id

    def add_paragraph_slide(self, presentation_id: str, title: str, body: str) -> str:
        """Append a slide with a title and a free-text body."""
        slide_id, title_id, body_id = self._create_slide(presentation_id)

        requests = self._title_requests(title_id, title)
        requests += self._insert_text(body_id, body)
        self._batch_update(presentation_id, requests, f"fill slide '{title}'")
        return slide_id

    # -- Request helpers ---------------------------------------------------

    def _create_slide(self, presentation_id: str) -> tuple[str, str, str]:
        """Create a layout slide and resolve its placeholder ids."""
        slide_id = new_object_id()
        self._batch_update(
            presentation_id,
            [
                {
                    "createSlide": {
                        "objectId": slide_id,
                        "slideLayoutReference": {"predefinedLayout": self.style.layout},
                    }
                }
            ],
            "create slide",
        )

        slides = self._get_slides(presentation_id)
        slide = next((s for s in slides if s.get("objectId") == slide_id), None)
        title_id, body_id = placeholder_ids(slide)
        return slide_id, title_id, body_id

    def _title_requests(self, title_id: str, title: str) -> list[dict[str, Any]]:
        requests = self._insert_text(title_id, title)
        if requests:
            requests.append(
                {
                    "updateTextStyle": {
                        "objectId": title_id,
                        "style": {
                            "bold": True,
                            "fontFamily": self.style.title_font_family,
                            "fontSize": {
                                "magnitude": self.style.title_font_size,
                                "unit": "PT",
                            },
                        },
                        "textRange": {"type": "ALL"},
                        "fields": "bold,fontFamily,fontSize",
                    }
                }
            )
        return requests

    @staticmethod
    def _insert_text(object_id: str, text: str) -> list[dict[str, Any]]:
        # The API rejects empty insertions
        if not text:
            return []
        return [{"insertText": {"objectId": object_id, "text": text, "insertionIndex": 0}}]

    def _get_slides(self, presentation_id: str) -> list[dict[str, Any]]:
        presentation = self._execute(
            self.service.presentations().get(presentationId=presentation_id),
            "read presentation",
        )
        return presentation.get("slides") or []

    def _batch_update(
        self, presentation_id: str, requests: list[dict[str, Any]], action: str
    ) -> dict[str, Any]:
        if not requests:
            return {}
        return self._execute(
            self.service.presentations().batchUpdate(
                presentationId=presentation_id, body={"requests": requests}
            ),
            action,
        )

    @staticmethod
    def _execute(request, action: str) -> dict[str, Any]:
        try:
            return request.execute()
        except HttpError as e:
            raise SlideAssemblyError(f"Failed to {action}: {e}") from e
