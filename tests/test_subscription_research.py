"""Subscription research workflow tests."""

import pytest

from automator.workflows.subscription_research import (
    BillingSource,
    FocusedTextCollector,
    LinkListCollector,
    SelectorChainCollector,
    SubscriptionResearchConfig,
    build_default_collectors,
    extract_pricing,
    extract_subscriptions,
    run,
)
from conftest import FakeChat

BILLING_URL = "https://github.com/settings/billing"
PRICING_URL = "https://github.com/features/copilot#pricing"


def _config(tmp_path, **kwargs) -> SubscriptionResearchConfig:
    return SubscriptionResearchConfig(
        output_dir=tmp_path,
        page_settle_seconds=0,
        pricing_settle_seconds=0,
        click_settle_seconds=0,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_run_writes_report(tmp_path, fake_host, caps):
    fake_host.pages = {
        BILLING_URL: {"body": "Copilot Pro\n$10 / month\nNext payment April 1"},
        PRICING_URL: {"body": "Copilot Pro $10 per month"},
    }
    chat = FakeChat(
        [
            '```json\n[{"service": "GitHub Copilot", "plan": "Pro", "price": "$10/month", '
            '"next_billing_date": "2025-04-01"}]\n```',
            '{"plans": [{"name": "Pro", "price": "$10", "currency": "USD", "billing_period": "monthly"}]}',
            '[{"service": "GitHub Copilot", "action": "keep", "reason": "used daily", "alternatives": "Cursor"}]',
        ]
    )
    events = []

    async def on_event(event, data):
        events.append(event)

    config = _config(tmp_path, sources=[BillingSource(id="gh", label="GitHub", url=BILLING_URL)])
    result = await run(caps, chat, config, on_event)

    assert result.ok, result.message
    assert result.counts == {"subscriptions": 1, "pricing": 1, "recommendations": 1}
    assert result.failures == []
    assert not fake_host.open_tabs
    assert events[0] == "started" and events[-1] == "done"

    report = (tmp_path / "subscription_deep_research.md").read_text(encoding="utf-8")
    assert "| GitHub Copilot | Pro | 10 | USD | monthly | 2025-04-01 | active | gh |  |" in report
    assert f"- Pricing URL: {PRICING_URL}" in report
    assert "| Pro | $10 | USD | monthly |  |  |" in report
    assert "  - Action: keep" in report


@pytest.mark.asyncio
async def test_run_without_subscriptions_fails(tmp_path, fake_host, caps, fake_chat):
    result = await run(caps, fake_chat, _config(tmp_path))

    assert not result.ok
    assert result.message == "No subscriptions extracted"
    assert len(result.failures) == 4
    assert all(f.endswith("no page text") for f in result.failures)
    assert fake_chat.calls == []
    assert not fake_host.open_tabs
    assert not (tmp_path / "subscription_deep_research.md").exists()


@pytest.mark.asyncio
async def test_run_requires_browser(tmp_path, fake_host, caps, fake_chat):
    fake_host.namespaces = {"excel"}
    result = await run(caps, fake_chat, _config(tmp_path))
    assert not result.ok
    assert "floorp" in result.message
    assert fake_host.calls_to("floorp.createTab") == []


@pytest.mark.asyncio
async def test_extract_subscriptions_handles_bad_reply():
    result = await extract_subscriptions(FakeChat(["no json here"]), "text", "zai")
    assert not result.ok
    assert result.value == []
    assert result.step == "extract:zai"


@pytest.mark.asyncio
async def test_extract_pricing_without_url(tmp_path, caps, fake_chat):
    result = await extract_pricing(caps, fake_chat, "", "Mystery AI", _config(tmp_path))
    assert result.ok
    assert result.value.notes == "pricing url not found"
    assert fake_chat.calls == []


@pytest.mark.asyncio
async def test_extract_pricing_llm_failure(tmp_path, fake_host, caps):
    fake_host.pages = {"https://www.cursor.com/pricing": {"body": "Pro $20/mo"}}
    chat = FakeChat([RuntimeError("rate limited")])
    result = await extract_pricing(caps, chat, "cursor", "Cursor", _config(tmp_path))
    assert not result.ok
    assert result.value.notes == "llm parsing failed"
    assert result.value.pricing_url == "https://www.cursor.com/pricing"
    assert not fake_host.open_tabs


@pytest.mark.asyncio
async def test_link_collector_reads_each_detail_panel(tmp_path, fake_host, caps):
    source = SubscriptionResearchConfig().sources[0]
    fake_host.on("floorp.tabGetElements", {"elements": ["<li>a</li>", "<li>b</li>"]})
    fake_host.pages = {source.url: {source.selectors["detail"]: "Cursor Pro $20 / month"}}
    chat = FakeChat(['{"service": "Cursor", "price": "$20"}', "sorry, no idea"])

    tab_id = await caps.browser.create_tab(source.url)
    text = await LinkListCollector().collect(caps.browser, chat, tab_id, source, _config(tmp_path))

    assert text == '{"service": "Cursor", "price": "$20"}'
    clicked = [args[1] for args in fake_host.calls_to("floorp.tabClick")]
    assert clicked[0] == source.selectors["inactive_toggle"]
    assert clicked[1].endswith(":nth-child(1)")
    assert clicked[2].endswith(":nth-child(2)")


@pytest.mark.asyncio
async def test_selector_chain_falls_back_to_page_text(tmp_path, fake_host, caps, fake_chat):
    source = BillingSource(
        id="zai",
        label="Z.ai",
        url="https://z.ai/manage-apikey/subscription",
        keywords=["plan"],
        selectors={"tabpanel": "div[role='tabpanel']", "promo_close": "button.close"},
    )
    fake_host.pages = {source.url: {"body": "Lite plan\n$3 / month"}}

    tab_id = await caps.browser.create_tab(source.url)
    collector = SelectorChainCollector("tabpanel", dismiss_key="promo_close")
    text = await collector.collect(caps.browser, fake_chat, tab_id, source, _config(tmp_path))

    assert text == "Lite plan\n$3 / month"
    assert fake_host.calls_to("floorp.tabClick") == [(tab_id, "button.close")]


def test_default_collectors():
    registry = build_default_collectors()
    assert isinstance(registry.get_collector("link"), LinkListCollector)
    assert isinstance(registry.get_collector("github_copilot"), SelectorChainCollector)
    assert isinstance(registry.get_collector("unknown"), FocusedTextCollector)
