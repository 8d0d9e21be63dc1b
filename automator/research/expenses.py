"""Expense accounts for the Japanese income tax return and the sums over them."""

from __future__ import annotations

import json
import math
from typing import Any, Mapping

from automator.models import (
    CategoryTotal,
    Expense,
    ExpenseCategory,
    ExpenseClassification,
    ExpenseSummary,
)
from automator.research.prompts import EXPENSE_PROMPT

FALLBACK_KEY = "miscellaneous"

# the accounts of the blue-return expense section
EXPENSE_CATEGORIES: dict[str, ExpenseCategory] = {
    "rent": ExpenseCategory(code="地代家賃", description="事務所・店舗の家賃"),
    "utilities": ExpenseCategory(code="水道光熱費", description="電気・ガス・水道"),
    "communication": ExpenseCategory(code="通信費", description="電話・インターネット・サーバー費用"),
    "travel": ExpenseCategory(code="旅費交通費", description="電車・タクシー・飛行機・宿泊"),
    "entertainment": ExpenseCategory(code="接待交際費", description="取引先との飲食・贈答品"),
    "supplies": ExpenseCategory(code="消耗品費", description="文房具・日用品・1万円未満の備品"),
    "equipment": ExpenseCategory(code="工具器具備品", description="10万円以上のPC・機器等（減価償却対象）"),
    "software": ExpenseCategory(
        code="消耗品費(ソフト)", description="サブスクリプション・ソフトウェア・クラウドサービス"
    ),
    "outsourcing": ExpenseCategory(code="外注工賃", description="業務委託・フリーランスへの支払い"),
    "advertising": ExpenseCategory(code="広告宣伝費", description="Web広告・印刷物・PR"),
    "insurance": ExpenseCategory(code="損害保険料", description="事業用の保険"),
    "books": ExpenseCategory(code="新聞図書費", description="書籍・技術書・新聞・雑誌"),
    "membership": ExpenseCategory(code="諸会費", description="団体会費・業界団体"),
    "repair": ExpenseCategory(code="修繕費", description="設備・建物の修理"),
    "tax_payment": ExpenseCategory(code="租税公課", description="事業税・印紙税・固定資産税"),
    "shipping": ExpenseCategory(code="荷造運賃", description="配送・梱包費用"),
    "training": ExpenseCategory(code="研修費", description="セミナー・研修・資格取得"),
    FALLBACK_KEY: ExpenseCategory(code="雑費", description="上記に該当しないもの"),
    "non_deductible": ExpenseCategory(code="対象外", description="経費計上不可（私的利用等）"),
}


def format_category_list(categories: Mapping[str, ExpenseCategory]) -> str:
    return "\n".join(f"{key}: {c.code} ({c.description})" for key, c in categories.items())


def format_line_items(items: list[Any]) -> str:
    if not items:
        return ""
    lines = ["Line items:"]
    for item in items:
        if isinstance(item, str):
            text = item
        elif isinstance(item, dict) and (item.get("description") or item.get("name")):
            text = str(item.get("description") or item.get("name"))
            if item.get("amount"):
                text += f" {item['amount']}円"
        else:
            text = json.dumps(item, ensure_ascii=False)
        lines.append(f"- {text}")
    return "\n".join(lines) + "\n"


def expense_prompt(expense: Expense, snippet_chars: int) -> str:
    return EXPENSE_PROMPT.format(
        filename=expense.filename,
        doc_type=expense.doc_type,
        vendor=expense.vendor_name or "unknown",
        date=expense.issue_date or "unknown",
        total=format_amount(expense.total_amount),
        tax=format_amount(expense.tax_amount) if expense.tax_amount else "unknown",
        number=expense.invoice_number or expense.order_number or "unknown",
        payment=expense.payment_method or "unknown",
        line_items=format_line_items(expense.line_items),
        snippet_chars=snippet_chars,
        ocr_text=expense.ocr_text[:snippet_chars] if snippet_chars > 0 else "",
    )


def fallback_classification(
    reason: str, categories: Mapping[str, ExpenseCategory] = EXPENSE_CATEGORIES
) -> ExpenseClassification:
    fallback = categories.get(FALLBACK_KEY) or EXPENSE_CATEGORIES[FALLBACK_KEY]
    return ExpenseClassification(key=FALLBACK_KEY, name=fallback.code, reason=reason, business_ratio=100)


def classification_from_reply(
    parsed: dict[str, Any] | None,
    categories: Mapping[str, ExpenseCategory] = EXPENSE_CATEGORIES,
) -> ExpenseClassification:
    """Turn the LLM's JSON object into a classification.

    Unknown keys fall back to miscellaneous, the account name always comes
    from *categories*, and the ratio is clamped to 0-100 (100 when missing).
    """
    if not parsed or not parsed.get("key"):
        return fallback_classification("unparseable LLM reply", categories)
    key = str(parsed["key"])
    if key in categories:
        name = categories[key].code
    else:
        key, name = FALLBACK_KEY, fallback_classification("", categories).name
    ratio = parsed.get("business_ratio")
    if isinstance(ratio, (int, float)) and not isinstance(ratio, bool):
        ratio = max(0.0, min(100.0, float(ratio)))
    else:
        ratio = 100.0
    return ExpenseClassification(
        key=key,
        name=name,
        reason=str(parsed.get("reason") or ""),
        business_ratio=ratio,
    )


def in_target_year(issue_date: str, target_year: int) -> bool:
    """True when no year is targeted, the date is blank, or it starts with *target_year*."""
    if target_year <= 0 or not issue_date:
        return True
    try:
        return int(issue_date.strip()[:4]) == target_year
    except ValueError:
        return False


def deductible_amount(expense: Expense) -> int:
    # rounds half up
    return math.floor(expense.total_amount * expense.classification.business_ratio / 100 + 0.5)


def summarize_expenses(expenses: list[Expense]) -> ExpenseSummary:
    """Totals overall and per account name, accounts sorted by total descending."""
    summary = ExpenseSummary(total_count=len(expenses))
    by_name: dict[str, CategoryTotal] = {}
    for e in expenses:
        deductible = deductible_amount(e)
        summary.grand_total += e.total_amount
        summary.business_total += deductible
        summary.tax_total += e.tax_amount
        total = by_name.setdefault(e.classification.name, CategoryTotal(name=e.classification.name))
        total.count += 1
        total.total += e.total_amount
        total.business_total += deductible
    summary.by_category = sorted(by_name.values(), key=lambda c: c.total, reverse=True)
    return summary


def format_amount(amount: float) -> str:
    """``1980.0`` -> ``1,980``; fractional amounts keep their decimals."""
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,}"


def _number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def _expense_item(no: int, e: Expense) -> dict[str, Any]:
    c = e.classification
    return {
        "no": no,
        "filename": e.filename,
        "issue_date": e.issue_date or None,
        "vendor_name": e.vendor_name or None,
        "doc_type": e.doc_type,
        "category_key": c.key,
        "category_name": c.name,
        "category_reason": c.reason or None,
        "total_amount": _number(e.total_amount),
        "tax_amount": _number(e.tax_amount),
        "subtotal_amount": _number(e.subtotal_amount),
        "currency": e.currency,
        "business_ratio": _number(c.business_ratio),
        "deductible_amount": deductible_amount(e),
        "invoice_number": e.invoice_number or None,
        "order_number": e.order_number or None,
        "payment_method": e.payment_method or None,
        "line_items": e.line_items,
    }


def expense_document(
    expenses: list[Expense],
    errors: list[dict[str, str]],
    *,
    generated_at: str,
    target_year: int,
    source_directory: str,
) -> dict[str, Any]:
    """The JSON document written for a classification run."""
    summary = summarize_expenses(expenses)
    return {
        "generated_at": generated_at,
        "target_year": target_year or None,
        "source_directory": source_directory,
        "summary": {
            "total_count": summary.total_count,
            "grand_total": _number(summary.grand_total),
            "business_total": summary.business_total,
            "tax_total": _number(summary.tax_total),
            "by_category": [
                {
                    "name": c.name,
                    "count": c.count,
                    "total": _number(c.total),
                    "business_total": c.business_total,
                }
                for c in summary.by_category
            ],
        },
        "expenses": [_expense_item(i, e) for i, e in enumerate(expenses, start=1)],
        "errors": errors,
    }
