from datetime import datetime, timezone

from seller_analytics.metrics.calculations import aggregate_seller_analytics
from seller_analytics.metrics.summaries import OrderSummary
from seller_analytics.reporting.formatter import (
    format_text_report,
    order_summary_to_dict,
    result_to_dict,
)

NOW = datetime(2024, 3, 10, 12, tzinfo=timezone.utc)


def _result(orders, products, seller="s1"):
    return aggregate_seller_analytics(
        seller=seller,
        granularity="day",
        orders=orders,
        products=products,
        cart_entries=[],
        wishlist_entries=[],
        now=NOW,
    )


def test_result_to_dict_uses_camel_case(widget, widget_orders):
    payload = result_to_dict(_result(widget_orders, [widget]))

    assert set(payload) == {
        "storeName",
        "products",
        "earnings",
        "totalOrders",
        "totalProducts",
        "avgOrderValue",
        "months",
        "monthlySales",
        "bestTimeToSell",
        "salesByRegion",
        "profitMargins",
        "funnel",
        "customers",
        "dateRange",
        "range",
    }
    assert payload["products"][0]["inCart"] == 0
    assert payload["products"][0]["deliveryFees"] == 5
    assert payload["profitMargins"][0]["totalProfit"] == 40
    assert payload["funnel"] == {"views": 100, "addedToCart": 0, "checkout": 2, "completed": 2}
    assert payload["dateRange"] == {"start": "2024-03-03T12:00:00+00:00", "end": "2024-03-10T12:00:00+00:00"}


def test_order_summary_spent_is_two_decimal_string():
    payload = order_summary_to_dict(OrderSummary(buyer="b1", total_orders=1, total_spent=7.5))
    assert payload["totalSpent"] == "7.50"


def test_text_report_lists_products(widget, widget_orders):
    report = format_text_report(_result(widget_orders, [widget]))

    assert "Store: s1 | Range: day" in report
    assert "Earnings $55.00" in report
    assert "Best time to sell: 14:00" in report
    assert "NG: $35.00" in report
    assert "1. Widget (P-100)" in report


def test_text_report_without_sales(widget):
    report = format_text_report(_result([], [widget]))
    assert report.endswith("No sales in this window.")
