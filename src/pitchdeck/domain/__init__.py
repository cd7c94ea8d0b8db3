"""Domain models."""

from pitchdeck.domain.company import CSV_COLUMNS, CompanyRecord, normalize_company_name

__all__ = ["CSV_COLUMNS", "CompanyRecord", "normalize_company_name"]
