"""Subscription deep research.

Visits billing pages, extracts AI-tool subscriptions with the LLM, looks up
the pricing pages of the services found and writes a Markdown report with
savings recommendations.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from automator.host import BrowserTabs, Capabilities, HostError
from automator.llm import ChatClient, parse_json_array, parse_json_object
from automator.models import (
    PricingCatalog,
    RawSubscription,
    Recommendation,
    SubscriptionEntry,
    WorkflowResult,
    YearlyPriceRule,
)
from automator.research.collect import collect_focused_text, get_page_text, open_tab, read_selector_text
from automator.research.events import EventCallback, emit_status
from automator.research.prompts import (
    EXTRACT_PRICING_SYSTEM,
    EXTRACT_SINGLE_SUBSCRIPTION_SYSTEM,
    EXTRACT_SUBSCRIPTIONS_SYSTEM,
    RECOMMEND_SYSTEM,
)
from automator.research.reduce import matches_price_line, reduce_text_for_llm, truncate
from automator.research.report import build_subscription_report, write_report
from automator.research.result import StepResult, collect_failures
from automator.research.subscriptions import (
    dedupe_subscriptions,
    filter_ai_subscriptions,
    filter_by_status,
    filter_noise_subscriptions,
    filter_recommendable,
    filter_zero_price_noise,
    mark_subscription_status,
    normalize_service_key,
    normalize_subscriptions,
    parse_raw_subscriptions,
)
from automator.workflows.base import WorkflowConfig, run_guarded

logger = logging.getLogger(__name__)

NAME = "subscription_research"


class BillingSource(BaseModel):
    id: str
    label: str
    url: str
    wait_selector: str = "body"
    keywords: list[str] = []
    selectors: dict[str, str] = {}


def _default_sources() -> list[BillingSource]:
    return [
        BillingSource(
            id="link",
            label="Link.com",
            url="https://app.link.com/subscriptions",
            keywords=[
                "subscription", "subscriptions", "plan", "billing", "payment", "invoice",
                "charged", "renew", "next", "amount", "price", "usd", "jpy", "copilot",
                "cursor", "openai", "claude", "anthropic", "z.ai", "zai",
            ],
            selectors={
                "list": "main.RouteContent > div.ListAndDetailView > div.ListAndDetailView-list",
                "detail": "main.RouteContent > div.ListAndDetailView > div.ListAndDetailView-detail",
                "inactive_toggle": 'button:has-text("すべての非アクティブを表示")',
            },
        ),
        BillingSource(
            id="zai",
            label="Z.ai",
            url="https://z.ai/manage-apikey/subscription",
            wait_selector="div[role='tabpanel']",
            keywords=["billing", "usage", "plan", "price", "usd", "jpy", "token"],
            selectors={
                "tabpanel": "div[role='tabpanel']",
                "promo_dialog": "div[role='dialog']",
                "promo_close": 'button:has-text("Close")',
            },
        ),
        BillingSource(
            id="github_copilot",
            label="GitHub Copilot",
            url="https://github.com/settings/billing",
            keywords=["copilot", "billing", "plan", "price", "monthly", "annual"],
            selectors={
                "plan_card": "[data-testid='copilot-plan-card']",
                "billing_container": "[data-hpc]",
            },
        ),
        BillingSource(
            id="google_subscriptions",
            label="Google Subscriptions",
            url="https://myaccount.google.com/subscriptions",
            keywords=["subscription", "plan", "renew", "next", "price", "monthly", "annual"],
            selectors={
                "main": "div[role='main']",
                "listitem": "div[role='main'] [role='listitem']",
            },
        ),
    ]


class SubscriptionResearchConfig(WorkflowConfig):
    output_file: str = "subscription_deep_research.md"
    sources: list[BillingSource] = Field(default_factory=_default_sources)
    pricing_urls: dict[str, str] = {
        "cursor": "https://www.cursor.com/pricing",
        "copilot": "https://github.com/features/copilot#pricing",
        "openai": "https://openai.com/pricing",
        "claude": "https://www.anthropic.com/pricing",
        "zai": "https://z.ai/pricing",
    }
    service_keywords: dict[str, list[str]] = {
        "cursor": ["cursor", "pro", "hobby", "pricing", "monthly", "annual"],
        "copilot": ["copilot", "github", "individual", "business", "pricing"],
        "openai": ["openai", "chatgpt", "gpt", "pricing", "api"],
        "claude": ["claude", "anthropic", "pricing", "api"],
        "zai": ["z.ai", "zai", "pricing", "token"],
    }
    # pricing pages read whole rather than reduced
    unreduced_pricing: list[str] = ["cursor", "copilot"]
    ai_filter_keywords: list[str] = [
        "ai", "llm", "gpt", "copilot", "cursor", "claude", "anthropic", "openai",
        "z.ai", "zai", "model", "token", "chatgpt", "x premium",
    ]
    ai_exclude_keywords: list[str] = ["buildjet", "payment", "merchant"]
    link_show_inactive: bool = True
    inactive_keywords: list[str] = [
        "inactive", "canceled", "cancelled", "cancel", "キャンセル", "解約",
        "非アクティブ", "停止", "終了", "downgrade pending",
    ]
    noise_keywords: list[str] = ["履歴", "取引", "明細", "transaction", "transactions", "history", "receipt"]
    zero_price_keep_keywords: list[str] = ["free", "trial", "promo", "credit", "無料"]
    # a Cursor charge around $200 with no stated period is the annual plan
    yearly_price_rules: list[YearlyPriceRule] = [
        YearlyPriceRule(service_keyword="cursor", min_price=180, max_price=220),
    ]
    include_inactive: bool = True
    max_page_chars: int = 14000
    wait_timeout_ms: int = 15000
    page_settle_seconds: float = 1.5
    pricing_settle_seconds: float = 1.2
    click_settle_seconds: float = 0.8


# --- per-source collectors ---


class SourceCollector(Protocol):
    """Protocol for reading one billing page into text for the LLM."""

    async def collect(
        self,
        browser: BrowserTabs,
        chat: ChatClient,
        tab_id: str,
        source: BillingSource,
        config: SubscriptionResearchConfig,
    ) -> str: ...


async def _click(browser: BrowserTabs, tab_id: str, selector: str | None, settle: float) -> bool:
    if not selector:
        return False
    try:
        await browser.click(tab_id, selector)
    except HostError:
        logger.debug("click failed", extra={"selector": selector})
        return False
    await asyncio.sleep(settle)
    return True


class FocusedTextCollector:
    """Whole page reduced to price/keyword lines."""

    async def collect(self, browser, chat, tab_id, source, config) -> str:
        return await collect_focused_text(browser, tab_id, source.keywords, config.max_page_chars)


class SelectorChainCollector:
    """First non-empty text among the source's named selectors, else the focused page text."""

    def __init__(self, *selector_keys: str, dismiss_key: str = "") -> None:
        self._selector_keys = selector_keys
        self._dismiss_key = dismiss_key

    async def collect(self, browser, chat, tab_id, source, config) -> str:
        if self._dismiss_key:
            await _click(browser, tab_id, source.selectors.get(self._dismiss_key), config.click_settle_seconds)
        for key in self._selector_keys:
            text = await read_selector_text(browser, tab_id, source.selectors.get(key), f"{source.id}.{key}")
            if text:
                return truncate(text, config.max_page_chars)
        return await collect_focused_text(browser, tab_id, source.keywords, config.max_page_chars)


class LinkListCollector:
    """Opens every list item's detail panel and extracts one entry per item."""

    item_suffix = " > div > ul > li[role='listitem']"

    async def _item_count(self, browser: BrowserTabs, tab_id: str, list_selector: str) -> int:
        try:
            return len(await browser.get_elements(tab_id, list_selector + self.item_suffix))
        except HostError:
            logger.debug("list items unavailable, estimating from text")
        text = await read_selector_text(browser, tab_id, list_selector, "link.list")
        return sum(1 for line in text.splitlines() if matches_price_line(line))

    async def collect(self, browser, chat, tab_id, source, config) -> str:
        selectors = source.selectors
        if config.link_show_inactive:
            await _click(browser, tab_id, selectors.get("inactive_toggle"), config.click_settle_seconds)

        list_selector = selectors.get("list", "")
        count = await self._item_count(browser, tab_id, list_selector)
        logger.info("link items found", extra={"count": count})

        details: list[str] = []
        for i in range(count):
            item = f"{list_selector}{self.item_suffix}:nth-child({i + 1})"
            if not await _click(browser, tab_id, item, config.click_settle_seconds):
                continue
            text = await read_selector_text(browser, tab_id, selectors.get("detail"), "link.detail")
            if not text:
                continue
            try:
                reply = await chat.chat(EXTRACT_SINGLE_SUBSCRIPTION_SYSTEM, f"Detail panel text:\n{text}")
            except Exception:
                logger.warning("detail extraction failed", extra={"item": i}, exc_info=True)
                continue
            parsed = parse_json_object(reply)
            if parsed:
                details.append(json.dumps(parsed, ensure_ascii=False))
        return "\n---\n".join(details)


class CollectorRegistry:
    """Maps billing source ids to collectors."""

    def __init__(self, default: SourceCollector) -> None:
        self._collectors: dict[str, SourceCollector] = {}
        self._default = default

    def register(self, source_id: str, collector: SourceCollector) -> None:
        self._collectors[source_id] = collector

    def get_collector(self, source_id: str) -> SourceCollector:
        return self._collectors.get(source_id, self._default)


def build_default_collectors() -> CollectorRegistry:
    registry = CollectorRegistry(default=FocusedTextCollector())
    registry.register("link", LinkListCollector())
    registry.register("zai", SelectorChainCollector("tabpanel", dismiss_key="promo_close"))
    registry.register("github_copilot", SelectorChainCollector("plan_card", "billing_container"))
    registry.register("google_subscriptions", SelectorChainCollector("main"))
    return registry


# --- steps ---


async def extract_subscriptions(chat: ChatClient, page_text: str, source_id: str) -> StepResult[list[RawSubscription]]:
    step = f"extract:{source_id}"
    try:
        reply = await chat.chat(EXTRACT_SUBSCRIPTIONS_SYSTEM, f"Source: {source_id}\nText:\n{page_text}")
    except Exception as exc:
        logger.warning("subscription extraction failed", extra={"source": source_id}, exc_info=True)
        return StepResult.failure(str(exc), [], step=step)
    items = parse_json_array(reply)
    if items is None:
        logger.warning("llm returned no json array", extra={"source": source_id})
        return StepResult.failure("LLM returned no JSON array", [], step=step)
    entries = parse_raw_subscriptions(items, source_id)
    logger.info("subscriptions extracted", extra={"source": source_id, "count": len(entries)})
    return StepResult.success(entries, step=step)


async def collect_source(
    caps: Capabilities,
    chat: ChatClient,
    source: BillingSource,
    config: SubscriptionResearchConfig,
    collectors: CollectorRegistry,
) -> StepResult[list[RawSubscription]]:
    step = f"collect:{source.id}"
    try:
        async with open_tab(
            caps.browser,
            source.url,
            wait_selector=source.wait_selector,
            wait_timeout_ms=config.wait_timeout_ms,
            settle_seconds=config.page_settle_seconds,
        ) as tab_id:
            collector = collectors.get_collector(source.id)
            text = await collector.collect(caps.browser, chat, tab_id, source, config)
    except HostError as exc:
        logger.warning("source collection failed", extra={"source": source.id}, exc_info=True)
        return StepResult.failure(str(exc), [], step=step)
    if not text:
        return StepResult.failure("no page text", [], step=step)
    return await extract_subscriptions(chat, text, source.id)


async def extract_pricing(
    caps: Capabilities,
    chat: ChatClient,
    service_key: str,
    service: str,
    config: SubscriptionResearchConfig,
) -> StepResult[PricingCatalog]:
    step = f"pricing:{service_key}"
    url = config.pricing_urls.get(service_key, "")
    if not url:
        return StepResult.success(
            PricingCatalog(service=service, notes="pricing url not found"), step=step
        )

    try:
        async with open_tab(
            caps.browser,
            url,
            wait_selector="body",
            wait_timeout_ms=config.wait_timeout_ms,
            settle_seconds=config.pricing_settle_seconds,
        ) as tab_id:
            text = await get_page_text(caps.browser, tab_id, config.max_page_chars * 2)
    except HostError as exc:
        logger.warning("pricing fetch failed", extra={"service": service}, exc_info=True)
        return StepResult.failure(
            str(exc),
            PricingCatalog(service=service, pricing_url=url, notes="pricing fetch failed"),
            step=step,
        )

    if service_key in config.unreduced_pricing:
        text = truncate(text, config.max_page_chars)
    else:
        text = reduce_text_for_llm(text, config.service_keywords.get(service_key, []), config.max_page_chars)

    failed = PricingCatalog(service=service, pricing_url=url, notes="llm parsing failed")
    try:
        reply = await chat.chat(
            EXTRACT_PRICING_SYSTEM, f"Service: {service}\nPricing URL: {url}\nPage text:\n{text}"
        )
    except Exception as exc:
        logger.warning("pricing extraction failed", extra={"service": service}, exc_info=True)
        return StepResult.failure(str(exc), failed, step=step)
    parsed = parse_json_object(reply)
    if parsed is None:
        return StepResult.failure("LLM returned no JSON object", failed, step=step)
    try:
        catalog = PricingCatalog.model_validate(parsed)
    except ValidationError:
        return StepResult.failure("invalid pricing JSON", failed, step=step)
    catalog.service = catalog.service or service
    catalog.pricing_url = catalog.pricing_url or url
    return StepResult.success(catalog, step=step)


async def build_pricing_catalog(
    caps: Capabilities,
    chat: ChatClient,
    subscriptions: list[SubscriptionEntry],
    config: SubscriptionResearchConfig,
) -> list[StepResult[PricingCatalog]]:
    """One catalog per distinct known service, in first-seen order."""
    services: dict[str, str] = {}
    for s in subscriptions:
        key = normalize_service_key(s.service)
        if key:
            services[key] = s.service
    return [await extract_pricing(caps, chat, key, name, config) for key, name in services.items()]


async def recommend(
    chat: ChatClient,
    subscriptions: list[SubscriptionEntry],
    catalog: list[PricingCatalog],
) -> StepResult[list[Recommendation]]:
    step = "recommend"
    subs_json = json.dumps([s.model_dump() for s in subscriptions], ensure_ascii=False)
    catalog_json = json.dumps([c.model_dump() for c in catalog], ensure_ascii=False)
    try:
        reply = await chat.chat(
            RECOMMEND_SYSTEM, f"Subscriptions:\n{subs_json}\n\nPricing Catalog:\n{catalog_json}"
        )
    except Exception as exc:
        logger.warning("recommendation failed", exc_info=True)
        return StepResult.failure(str(exc), [], step=step)
    items = parse_json_array(reply) or []
    recs = [Recommendation.model_validate(i) for i in items if isinstance(i, dict)]
    return StepResult.success(recs, step=step)


def refine_subscriptions(
    raws: list[RawSubscription], config: SubscriptionResearchConfig
) -> list[SubscriptionEntry]:
    """Normalize, keep AI tools, mark status, drop noise and duplicates."""
    subs = normalize_subscriptions(raws, config.yearly_price_rules)
    subs = filter_ai_subscriptions(subs, config.ai_filter_keywords, config.ai_exclude_keywords)
    subs = mark_subscription_status(subs, config.inactive_keywords)
    subs = filter_noise_subscriptions(subs, config.noise_keywords)
    subs = filter_zero_price_noise(subs, config.zero_price_keep_keywords)
    if not config.include_inactive:
        subs = filter_by_status(subs, "active")
    return dedupe_subscriptions(subs)


async def run(
    caps: Capabilities,
    chat: ChatClient,
    config: SubscriptionResearchConfig | None = None,
    on_event: EventCallback | None = None,
    collectors: CollectorRegistry | None = None,
) -> WorkflowResult:
    config = config or SubscriptionResearchConfig()
    collectors = collectors or build_default_collectors()

    async def body() -> WorkflowResult:
        await caps.require("floorp")
        output_path = str(config.output_path)

        collected: list[StepResult[list[RawSubscription]]] = []
        for source in config.sources:
            await emit_status(on_event, "collect", source=source.label)
            logger.info("collecting source", extra={"source": source.id, "url": source.url})
            collected.append(await collect_source(caps, chat, source, config, collectors))

        raws = [entry for r in collected for entry in r.value]
        if not raws:
            return WorkflowResult(
                workflow=NAME,
                ok=False,
                message="No subscriptions extracted",
                output_path=output_path,
                failures=collect_failures(collected),
            )

        subs = refine_subscriptions(raws, config)

        await emit_status(on_event, "pricing")
        pricing = await build_pricing_catalog(caps, chat, subs, config)
        catalog = [p.value for p in pricing]

        await emit_status(on_event, "recommend")
        recs = await recommend(chat, filter_recommendable(subs), catalog)

        write_report(config.output_path, build_subscription_report(subs, catalog, recs.value))
        return WorkflowResult(
            workflow=NAME,
            ok=True,
            message="Report written",
            output_path=output_path,
            counts={
                "subscriptions": len(subs),
                "pricing": len(catalog),
                "recommendations": len(recs.value),
            },
            failures=collect_failures([*collected, *pricing, recs]),
        )

    return await run_guarded(NAME, body, on_event)
