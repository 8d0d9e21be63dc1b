"""Records produced and consumed by the workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from automator.research.classify import Category

BillingPeriod = Literal["monthly", "yearly", "unknown"]
SubscriptionStatus = Literal["active", "inactive", ""]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_text(v) for v in value if v is not None)
    return str(value).strip()


class LlmRecord(BaseModel):
    """Base for records parsed out of LLM JSON: every field arrives as text."""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any, info: ValidationInfo) -> Any:
        if cls.model_fields[info.field_name].annotation is not str:
            return value
        return _as_text(value)


# --- web research ---


@dataclass
class SearchResult:
    rank: int
    title: str
    url: str
    snippet: str = ""
    domain: str = ""
    page_title: str = ""
    page_content: str = ""
    extracted_at: datetime | None = None


@dataclass
class AnalyzedResult:
    result: SearchResult
    summary: str
    category: Category = "other"


# --- paper survey ---


@dataclass
class Paper:
    source: str
    title: str
    authors: str = ""
    abstract: str = ""
    link: str = ""
    citations: str = "N/A"


@dataclass
class AnalyzedPaper:
    num: int
    paper: Paper
    summary: str


# --- subscriptions ---


class RawSubscription(LlmRecord):
    service: str = ""
    plan: str = ""
    price: str = ""
    currency: str = ""
    billing_period: str = ""
    next_billing_date: str = ""
    source: str = ""
    notes: str = ""


class SubscriptionEntry(BaseModel):
    service: str = ""
    plan: str = ""
    price: float = 0.0
    currency: str = ""
    billing_period: BillingPeriod = "unknown"
    next_billing_date: str = ""
    source: str = ""
    status: SubscriptionStatus = ""
    notes: str = ""
    raw_price: str = ""


class YearlyPriceRule(BaseModel):
    """Mark a service billed yearly when its price lands in a band and no period was stated."""

    service_keyword: str
    min_price: float
    max_price: float

    def applies(self, service: str, price: float) -> bool:
        return self.service_keyword.lower() in service.lower() and self.min_price <= price <= self.max_price


class PricingPlan(LlmRecord):
    name: str = ""
    price: str = ""
    currency: str = ""
    billing_period: str = ""
    tokens: str = ""
    model_notes: str = ""


class PricingCatalog(LlmRecord):
    service: str = ""
    pricing_url: str = ""
    plans: list[PricingPlan] = []
    notes: str = ""

    @field_validator("plans", mode="before")
    @classmethod
    def _plans_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []


class Recommendation(LlmRecord):
    service: str = ""
    action: str = ""
    reason: str = ""
    alternatives: str = ""


# --- spreadsheet comparisons ---


@dataclass
class RepoStats:
    name: str
    url: str
    stars: int = 0
    forks: int = 0


@dataclass
class VideoEntry:
    platform: str
    rank: int
    title: str
    views_raw: str = ""
    views: int = 0
    url: str = ""
    thumb_path: str = ""


# --- expenses ---


class ExpenseCategory(BaseModel):
    code: str
    description: str


class ExpenseClassification(BaseModel):
    key: str = "miscellaneous"
    name: str = "雑費"
    reason: str = ""
    business_ratio: float = 100


class Expense(BaseModel):
    """One receipt or invoice as read by OCR, plus its account classification."""

    filename: str
    doc_type: str = "unknown"
    vendor_name: str = ""
    issue_date: str = ""
    total_amount: float = 0
    tax_amount: float = 0
    subtotal_amount: float = 0
    currency: str = "JPY"
    invoice_number: str = ""
    order_number: str = ""
    payment_method: str = ""
    line_items: list[Any] = []
    ocr_text: str = ""
    ocr_quality: float = 0
    classification: ExpenseClassification = Field(default_factory=ExpenseClassification)


@dataclass
class CategoryTotal:
    name: str
    count: int = 0
    total: float = 0
    business_total: int = 0


@dataclass
class ExpenseSummary:
    total_count: int = 0
    grand_total: float = 0
    business_total: int = 0
    tax_total: float = 0
    by_category: list[CategoryTotal] = field(default_factory=list)


# --- calendar ---


@dataclass(frozen=True)
class BusySlot:
    date: str
    start: str
    end: str
    title: str


# --- results ---


class WorkflowResult(BaseModel):
    """What every workflow returns to its caller."""

    workflow: str
    ok: bool
    message: str = ""
    output_path: str = ""
    counts: dict[str, int] = {}
    failures: list[str] = []
    details: dict[str, Any] = {}
