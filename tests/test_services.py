import asyncio
from types import SimpleNamespace

import pytest

from seller_analytics.config import AppConfig
from seller_analytics.data_sources.base import OrderRecord
from seller_analytics.data_sources.memory import InMemorySource
from seller_analytics.errors import InvalidArgumentError
from seller_analytics.services import (
    buyer_order_summary,
    compute_seller_analytics,
    create_service_context,
    generate_analytics_insights,
    platform_summary,
    seller_sales_summary,
)


class FakeLLM:
    def __init__(self, reply="整体表现稳定。"):
        self.reply = reply
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        return SimpleNamespace(content=self.reply)


@pytest.fixture
def context(widget_source, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return create_service_context(AppConfig(), data_source=widget_source)


def test_compute_seller_analytics_envelope(context):
    payload = asyncio.run(
        compute_seller_analytics(context, seller="s1", granularity="month", start="2024-03-01", end="2024-03-31")
    )

    assert payload["success"] is True
    data = payload["data"]
    assert data["storeName"] == "s1"
    assert data["earnings"] == 55
    assert data["months"] == ["2024-03"]
    assert data["dateRange"]["start"].startswith("2024-03-01T00:00:00")
    assert data["range"] == "month"


def test_compute_seller_analytics_rejects_bad_dates(context):
    with pytest.raises(InvalidArgumentError):
        asyncio.run(compute_seller_analytics(context, seller="s1", start="soon", end="later"))


def test_summaries(context):
    sales = seller_sales_summary(context, seller="s1")["data"]
    assert sales["totalOrders"] == 2
    assert sales["topProduct"]["id"] == "P-100"
    assert sales["topProduct"]["orders"] == 2

    orders = buyer_order_summary(context, buyer="b1")["data"]
    assert orders["totalOrders"] == 2
    assert orders["totalSpent"] == "55.00"

    platform = platform_summary(context)["data"]
    assert platform == {"totalOrders": 2, "totalProducts": 1, "revenueByCurrency": {"USD": 55.0}}


def test_sales_summary_for_seller_without_orders(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    source = InMemorySource(orders=[OrderRecord(product_ref="x", seller="s2")])
    context = create_service_context(AppConfig(), data_source=source)

    data = seller_sales_summary(context, seller="s1")["data"]
    assert data["totalOrders"] == 0
    assert data["topProduct"] is None

    with pytest.raises(InvalidArgumentError):
        seller_sales_summary(context, seller="")


def test_insights_use_llm(widget_source):
    llm = FakeLLM()
    context = create_service_context(AppConfig(), data_source=widget_source, llm=llm)
    analytics = {"storeName": "s1", "earnings": 55}

    report = generate_analytics_insights(context, analytics=analytics, focus="地区")["report"]

    assert report == {"analytics": analytics, "insights": "整体表现稳定。"}
    system, human = llm.calls[0]
    assert "地区" in system.content
    assert '"earnings": 55' in human.content


def test_insights_require_llm(context):
    assert context.llm is None
    with pytest.raises(RuntimeError):
        generate_analytics_insights(context, analytics={})
