"""Typed responses of host operations that answer with JSON."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

_AMOUNT_NOISE_RE = re.compile(r"[^0-9.\-]")


class HostModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- browser ---


class TabInstance(HostModel):
    instance_id: str = Field(alias="instanceId")


class ElementText(HostModel):
    text: str = ""


class AttributeValue(HostModel):
    value: str = ""


class ElementList(HostModel):
    elements: list[str] = []


class ActionResult(HostModel):
    ok: bool = False


class Screenshot(HostModel):
    image: str = ""  # base64 PNG


class BrowserTab(HostModel):
    id: str | int = ""
    browser_id: str = Field(default="", alias="browserId")
    url: str = ""
    title: str = ""


# --- spreadsheet ---


class SheetNames(HostModel):
    sheets: list[str] = []


class CellValue(HostModel):
    cell: str = ""
    value: str = ""


class RangeValues(HostModel):
    range: str = ""
    data: list[list[Any]] = []
    rows: int = 0
    cols: int = 0


class WriteResult(HostModel):
    success: bool = False
    rows: int = 0
    cols: int = 0


# --- git ---


class GitBranch(HostModel):
    branch: str = ""


class GitDiff(HostModel):
    staged: str = ""
    unstaged: str = ""
    combined: str = ""


class GitStatus(HostModel):
    status: str = ""


class GitLog(HostModel):
    log: str = ""


class GitBranches(HostModel):
    branches: list[str] = []


# --- thunderbird ---


class MailIdentity(HostModel):
    name: str = ""
    email: str = ""
    profile: str = ""


class CalendarEvent(HostModel):
    title: str = ""
    start_time: str = ""
    end_time: str = ""
    date: str = ""


class MailMessage(HostModel):
    subject: str = ""
    sender: str = Field(default="", alias="from")
    date: str = ""
    snippet: str = ""


# --- ocr ---


class DocumentFields(HostModel):
    """Fields the vision model read off a receipt or invoice; blanks become defaults."""

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

    @field_validator(
        "doc_type", "vendor_name", "issue_date", "currency", "invoice_number",
        "order_number", "payment_method", "line_items",
        mode="before",
    )
    @classmethod
    def _blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == "":
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @field_validator("total_amount", "tax_amount", "subtotal_amount", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> Any:
        # "¥1,200" and "1200円" both arrive from the model
        if isinstance(value, str):
            value = _AMOUNT_NOISE_RE.sub("", value)
        return value or 0


class OcrDocument(HostModel):
    text: str = ""
    text_quality: float = 0
    structured: DocumentFields | None = None

    @field_validator("text", "text_quality", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        return cls.model_fields[info.field_name].default if value is None else value
