import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from seller_analytics.config import AnalyticsConfig, AppConfig
from seller_analytics.data_sources.base import CartRecord, OrderRecord
from seller_analytics.data_sources.memory import InMemorySource
from seller_analytics.errors import InvalidArgumentError
from seller_analytics.pipeline.pipeline import AnalyticsPipeline
from seller_analytics.utils.dates import parse_boundary


def _pipeline(source, default_range="day"):
    config = AppConfig(analytics=AnalyticsConfig(default_range=default_range))
    return AnalyticsPipeline(config=config, data_source=source)


def test_explicit_window_filters_orders(widget, widget_orders):
    stale = OrderRecord(
        product_ref="p1",
        seller="s1",
        quantity=10,
        price=10,
        created_at=datetime(2023, 1, 1, tzinfo=timezone.utc),
    )
    source = InMemorySource(
        orders=widget_orders + [stale],
        products=[widget],
        cart_entries=[CartRecord(buyer="x", product_ref="p1")],
    )
    start = datetime(2024, 3, 1, tzinfo=timezone.utc)
    end = datetime(2024, 3, 31, tzinfo=timezone.utc)

    result = _pipeline(source).run(seller="s1", granularity="week", start=start, end=end)

    assert result.earnings == 55
    assert result.total_orders == 2
    assert result.months == ["2024-W10"]
    assert result.funnel.added_to_cart == 1
    assert (result.date_range.start, result.date_range.end) == (start, end)


def test_default_window_comes_from_granularity(widget_source):
    now = datetime(2024, 3, 6, 15, tzinfo=timezone.utc)

    result = _pipeline(widget_source, default_range="hour").run(seller="s1", now=now)

    # 只有 24 小时内的第二笔订单落入默认窗口。
    assert result.range == "hour"
    assert result.total_orders == 1
    assert result.months == ["2024-03-06T09"]
    assert result.date_range.start == now - timedelta(hours=24)
    assert result.date_range.end == now


def test_fetch_snapshot_collects_all_collections(widget_source):
    snapshot = asyncio.run(_pipeline(widget_source).fetch_snapshot("s1", None, None))
    assert len(snapshot.orders) == 2
    assert len(snapshot.products) == 1
    assert snapshot.cart_entries == []
    assert snapshot.wishlist_entries == []


def test_invalid_requests_are_rejected(widget_source):
    pipeline = _pipeline(widget_source)
    with pytest.raises(InvalidArgumentError):
        pipeline.run(seller="")
    with pytest.raises(InvalidArgumentError):
        pipeline.run(seller="s1", granularity="decade")
    with pytest.raises(InvalidArgumentError):
        pipeline.run(
            seller="s1",
            start=datetime(2024, 3, 2, tzinfo=timezone.utc),
            end=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )


def test_naive_timestamps_use_configured_zone_for_window():
    config = AppConfig(analytics=AnalyticsConfig(timezone="Asia/Shanghai"))
    tz = config.analytics.tzinfo
    order = OrderRecord(product_ref="x", seller="s1", price=10, created_at=datetime(2024, 3, 5, 3, 0))
    pipeline = AnalyticsPipeline(config=config, data_source=InMemorySource(orders=[order]))

    result = pipeline.run(
        seller="s1",
        granularity="hour",
        start=parse_boundary("2024-03-05T00:00", tz),
        end=parse_boundary("2024-03-05T05:00", tz),
    )

    assert result.earnings == 10
    assert result.months == ["2024-03-05T03"]
