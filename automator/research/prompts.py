"""Prompt templates for each workflow stage."""

from __future__ import annotations

# --- subscription research ---

MERCHANT_RULES = """\
IMPORTANT: distinguish between MERCHANT and SERVICE names.
- Merchant names (e.g. BUILDJET OÜ, OpenAI OpCo) are payment processors, NOT the actual service.
- Look for the actual service name in the heading (e.g. Cursor, ChatGPT Plus, Claude Pro, X Premium).
- If a merchant name is mentioned, treat it as a note, not the service name.
"""

EXTRACT_SUBSCRIPTIONS_SYSTEM = (
    "You extract subscription entries from billing page text.\n"
    + MERCHANT_RULES
    + """\
Return ONLY a JSON array. Each item must include: service, plan, price, currency, \
billing_period, next_billing_date, source, notes.
If unknown, use an empty string. Preserve currency symbols like $, €, £, ¥, ￥ in price.
For period: '年' = yearly, '月' = monthly, '日' should be ignored (likely a parse error).
Do not add extra fields.
"""
)

EXTRACT_SINGLE_SUBSCRIPTION_SYSTEM = (
    "Extract a SINGLE subscription entry from detail panel text.\n"
    + MERCHANT_RULES
    + """\
Return ONLY a JSON object with: service, plan, price, currency, billing_period, \
next_billing_date, notes. If unknown, use an empty string.
"""
)

EXTRACT_PRICING_SYSTEM = """\
You extract pricing plans from a pricing page.
Return ONLY a JSON object with fields: service, pricing_url, plans, notes.
Each plan item: name, price, currency, billing_period, tokens, model_notes.
Use empty strings for unknown values. Preserve currency symbols like $, €, £, ¥, ￥ in price.
"""

RECOMMEND_SYSTEM = """\
You recommend savings and alternatives for programming AI subscriptions.
Return ONLY a JSON array. Each item fields: service, action, reason, alternatives.
"""

# --- shared research sections ---

RESEARCHER_SYSTEM = "You are an expert researcher. Use a formal academic tone. Write in {language}."

SUMMARIZE_PAPER_SYSTEM = "You are a research paper summarizer. Summarize in 1-2 sentences in {language}."

ANALYZE_PAGE_SYSTEM = """\
You are a research analyst. Analyze the following web page content about "{topic}" and provide: \
1) key information about {topic}, 2) the context or perspective of this source. \
Write 2-3 sentences in {language}.
"""

FINDING_SYSTEM = """\
You are an expert research analyst writing in {language}. Use a formal academic tone with detailed \
explanations. Structure your response with clear paragraphs. Always cite source numbers like \
[1], [3], [5] when referring to specific information.
"""

SECTION_PROMPTS: dict[str, str] = {
    "abstract": """\
Based on the analysis of the following {count} sources, write a comprehensive Abstract \
(200-250 words) about "{topic}". Include background, scope, key findings and implications.

Source summaries:
{summaries}
""",
    "introduction": """\
Write an Introduction section (200-300 words) for a survey on "{topic}". Include: \
1) background and importance, 2) current challenges, 3) purpose of this survey, \
4) structure overview. This survey covers {count} sources.
""",
    "overview": """\
Write an Overview section (300-400 words) explaining what "{topic}" is, its characteristics, \
history and current state, based on the collected sources.

Source summaries:
{summaries}
""",
    "findings": """\
Analyze the following summaries and organize the key findings about "{topic}" into 3-4 thematic \
categories (400-500 words). For each category give a heading, explain the research direction \
and cite sources by number (e.g. [1], [3,5]).

Summaries:
{summaries}
""",
    "discussion": """\
Write a Discussion section (250-300 words) on "{topic}" that synthesizes the key trends, \
identifies gaps, suggests future directions and discusses practical implications. \
{count} sources were analyzed.

Source summaries:
{summaries}
""",
    "conclusions": """\
Write a brief Conclusions section (150-200 words) for this study of "{topic}": main \
contributions, key takeaways and final remarks. {count} sources were analyzed.
""",
}


def format_section_prompt(section: str, topic: str, summaries: str, count: int) -> str:
    return SECTION_PROMPTS[section].format(topic=topic, summaries=summaries, count=count)


def format_finding_prompt(instruction: str, summaries: str) -> str:
    return f"{instruction}\n\nSources:\n{summaries}"


def format_paper_prompt(title: str, abstract: str) -> str:
    return f"Title: {title}\nAbstract: {abstract}"


def format_page_prompt(page_title: str, content: str) -> str:
    return f"Page Title: {page_title}\n\nContent:\n{content}"


# --- commit & pull request ---

COMMIT_MESSAGE_SYSTEM = """\
You write git commit messages. Given a diff, reply with a single Conventional Commits style \
subject line (max 72 characters). Reply with the message only.
"""

PR_DESCRIPTION_SYSTEM = """\
You write pull request descriptions. Given a diff, return ONLY a JSON object with fields \
"title" (one line) and "body" (Markdown summary of the changes).
"""


# --- expense classification ---

EXPENSE_CLASSIFY_SYSTEM = """\
You are a tax accountant who knows the Japanese income tax return (確定申告) well.
From the expense you are given, choose the single most suitable expense account and \
estimate its business-use ratio (%). Assume a sole proprietor filing a blue return (青色申告).

Expense accounts (key: account name (what it covers)):
{categories}

Reply ONLY with a JSON object of this form:
{{"key": "category key", "name": "account name", "reason": "reason in 30 characters or fewer", "business_ratio": 100}}
Rules:
- business_ratio is the business-use share (0-100); lower it when private use is likely.
- AppleCare and personal subscriptions get a low business_ratio.
- Servers, domains and cloud services are communication or software.
- PCs and monitors of 100,000 yen or more are equipment.
- Books and technical books are books.
- When you cannot decide, choose miscellaneous.
"""

EXPENSE_PROMPT = """\
Classify the following expense.

File: {filename}
Document type: {doc_type}
Vendor: {vendor}
Date: {date}
Total: {total} yen
Tax: {tax} yen
Invoice number: {number}
Payment method: {payment}
{line_items}
OCR text (first {snippet_chars} characters):
{ocr_text}
"""
