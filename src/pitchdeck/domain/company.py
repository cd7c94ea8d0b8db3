"""CompanyRecord: one company's flattened attribute set."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CompanyRecord(BaseModel):
    """A normalized company row.

    Field names are snake_case in Python and camelCase on the wire (tool
    arguments, JSON responses and the CSV header). Records are frozen.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    company_name: str = Field(description="The full name of the company")
    location: str = Field(default="", description="Where the company is located")
    founded_year: int = Field(default=0, description="The year the company was founded")
    arr: float = Field(
        default=0,
        description="The ARR, or Annual Recurring Revenue, of the company",
    )
    industry: str = Field(default="", description="The industry the company is in (e.g. Fintech)")
    burn_rate: float = Field(default=0, description="The burn rate of the company")
    exit_strategy: str = Field(default="", description="The exit strategy of the company (e.g. IPO)")
    deal_status: str = Field(default="", description="The deal status of the company (e.g. Due Diligence)")
    funding_stage: str = Field(default="", description="The funding stage of the company (e.g. Series C)")
    investment_amount: float = Field(default=0, description="The amount invested into the company")
    investment_date: str = Field(default="", description="The date in which this company was invested in")
    key_metrics: str = Field(
        default="",
        description="A general string that contains important miscellaneous notes for the company",
    )
    presentation_id: Optional[str] = Field(
        default=None,
        description="Google Slides presentation id, set after a deck is created",
    )

    @field_validator("presentation_id", mode="before")
    @classmethod
    def blank_presentation_id(cls, v: Any) -> Any:
        # Empty CSV cells come back as ""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("founded_year", mode="before")
    @classmethod
    def whole_year(cls, v: Any) -> Any:
        if isinstance(v, float) and v.is_integer():
            return int(v)
        if isinstance(v, str) and v.strip().endswith(".0"):
            return v.strip()[:-2]
        return v

    def to_row(self) -> dict[str, Any]:
        """Serialize to a camelCase row for JSON or CSV output."""
        return self.model_dump(by_alias=True)


CSV_COLUMNS: list[str] = [
    field.alias or name for name, field in CompanyRecord.model_fields.items()
]


def normalize_company_name(name: str) -> str:
    """Key used to match company names: trimmed and case-folded."""
    return name.strip().lower()
