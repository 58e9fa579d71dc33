from datetime import timezone

from seller_analytics.data_sources.base import CartRecord, OrderRecord, ProductRecord, WishlistRecord
from seller_analytics.metrics.bucketing import ProductAccumulator, aggregate_orders
from seller_analytics.metrics.identifiers import reconcile_catalog
from seller_analytics.metrics.merger import (
    best_time_to_sell,
    conversion_funnel,
    customer_insights,
    merge_cart,
    merge_wishlist,
    profit_margins,
    sales_by_region,
    sorted_series,
    top_products,
)


def test_cart_matches_by_identifier_not_seller_label(widget):
    catalog = reconcile_catalog([widget], "s1")
    accumulators = {}
    entries = [
        CartRecord(buyer="x", product_ref="p1", seller="s1", quantity=2),
        CartRecord(buyer="y", product_ref="P-100", seller="stale-label"),
        CartRecord(buyer="z", product_ref="elsewhere", seller="s1"),
    ]

    matched = merge_cart(accumulators, entries, catalog)

    assert matched == 2
    assert accumulators["P-100"].in_cart == 3
    assert accumulators["P-100"].sold == 0
    assert accumulators["P-100"].price == 10
    assert accumulators["P-100"].name == "Widget"


def test_wishlist_includes_products_seen_in_orders(widget):
    catalog = reconcile_catalog([widget], "s1")
    aggregation = aggregate_orders(
        [OrderRecord(product_ref="ghost", seller="s1", price=5)],
        seller="s1",
        granularity="day",
        catalog=catalog,
        tz=timezone.utc,
    )
    entries = [
        WishlistRecord(buyer="x", product_ref="P-100"),
        WishlistRecord(buyer="y", product_ref="ghost"),
        WishlistRecord(buyer="z", product_ref="someone-else"),
    ]

    matched = merge_wishlist(aggregation.accumulators, entries, catalog, aggregation.order_refs)

    assert matched == 2
    assert aggregation.accumulators["P-100"].in_wishlist == 1
    assert aggregation.accumulators["ghost"].in_wishlist == 1
    assert "someone-else" not in aggregation.accumulators


def test_profit_margins_only_for_sold_items():
    accumulators = {
        "a": ProductAccumulator(id="a", name="A", price=10, cost=2, sold=5),
        "b": ProductAccumulator(id="b", name="B", price=3, cost=1, in_cart=4),
    }
    margins = profit_margins(accumulators)
    assert len(margins) == 1
    margin = margins[0]
    assert margin.total_revenue == 60
    assert margin.profit_per_unit == 8
    assert margin.total_profit == 40


def test_top_products_sorted_by_revenue():
    accumulators = {
        "a": ProductAccumulator(id="a", name="A", price=10, cost=0, sold=1),
        "b": ProductAccumulator(id="b", name="B", price=5, cost=0, sold=3),
        "c": ProductAccumulator(id="c", name="C", price=50, cost=0, in_wishlist=2),
    }
    assert [item.id for item in top_products(accumulators)] == ["b", "a"]


def test_sales_by_region_orders_by_amount_then_country():
    regions = sales_by_region({"US": 20.0, "NG": 35.0, "GB": 20.0})
    assert [(region.country, region.amount) for region in regions] == [
        ("NG", 35.0),
        ("GB", 20.0),
        ("US", 20.0),
    ]


def test_customer_insights_counts_repeat_buyers():
    insights = customer_insights({"a": 1, "b": 3, "c": 2})
    assert (insights.total, insights.repeat, insights.new) == (3, 2, 1)


def test_funnel_sums_catalog_views():
    products = [
        ProductRecord(store_id="p1", external_id="P-1", seller="s1", views=40),
        ProductRecord(store_id="p2", seller="s1", views="10"),
        ProductRecord(store_id="p3", seller="s1"),
    ]
    funnel = conversion_funnel(reconcile_catalog(products, "s1"), added_to_cart=3, order_count=2)
    assert (funnel.views, funnel.added_to_cart, funnel.checkout, funnel.completed) == (50, 3, 2, 2)


def test_best_time_labels_and_series_order():
    best = best_time_to_sell([0.0] * 24)
    assert best.labels[0] == "0:00"
    assert best.labels[23] == "23:00"
    assert len(best.sales) == 24
    assert sorted_series({"2024-03-06": 1.0, "2024-03-05": 2.0}) == (
        ["2024-03-05", "2024-03-06"],
        [2.0, 1.0],
    )
