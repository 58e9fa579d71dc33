import json
from datetime import datetime, timedelta, timezone

import pytest

from seller_analytics.data_sources.base import (
    BuyerRef,
    OrderRecord,
    ProductRecord,
    buyer_identity,
    in_window,
)
from seller_analytics.data_sources.json_export import JsonExportSource
from seller_analytics.data_sources.memory import InMemorySource
from seller_analytics.data_sources.mock_marketplace import (
    MockMarketplaceSettings,
    MockMarketplaceSource,
)

ANCHOR = datetime(2024, 6, 1, tzinfo=timezone.utc)


def test_order_from_document_reads_nested_fields():
    order = OrderRecord.from_document(
        {
            "_id": "o1",
            "productId": "P-100",
            "seller": "s1",
            "buyer": {"_id": "b1", "email": "b1@example.com", "country": "KE"},
            "quantity": 2,
            "variant": {"price": 12.5},
            "delivery": {"fee": 3, "country": "NG"},
            "createdAt": "2024-03-05T14:30:00Z",
            "status": "Shipped",
        }
    )
    assert order.product_ref == "P-100"
    assert order.buyer == BuyerRef(id="b1", email="b1@example.com", country="KE")
    assert order.variant_price == 12.5
    assert order.delivery_fee == 3
    assert order.country == "NG"
    assert order.created_at == datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc)


def test_product_from_document_identifier_forms():
    full = ProductRecord.from_document(
        {"_id": "abc", "id": "P-1", "seller": "s1", "images": ["/a.png"], "deliveryFee": 4}
    )
    assert full.identifiers == ("abc", "P-1")
    assert full.image == "/a.png"
    assert full.cost == 4

    legacy = ProductRecord.from_document({"id": "P-2", "seller": "s1"})
    assert legacy.store_id == "P-2"
    assert legacy.external_id is None

    with pytest.raises(ValueError):
        ProductRecord.from_document({"name": "no ids"})


def test_buyer_identity_shapes():
    assert buyer_identity("b1") == ("b1", None)
    assert buyer_identity(BuyerRef(email="x@example.com", country="GH")) == ("x@example.com", "GH")
    assert buyer_identity({"_id": 7}) == ("7", None)
    assert buyer_identity("  ") == (None, None)
    assert buyer_identity(None) == (None, None)


def test_in_window_is_inclusive_and_mixes_naive_with_aware():
    start = datetime(2024, 3, 1, tzinfo=timezone.utc)
    end = datetime(2024, 3, 31, tzinfo=timezone.utc)
    assert in_window(start, start, end)
    assert in_window(end, start, end)
    assert in_window(datetime(2024, 3, 15), start, end)
    assert not in_window(end + timedelta(seconds=1), start, end)
    assert not in_window(None, start, end)
    assert in_window(None, None, None)


def test_in_memory_source_filters_and_sorts(widget, widget_orders):
    undated = OrderRecord(product_ref="p1", seller="s1")
    source = InMemorySource(orders=[widget_orders[1], undated, widget_orders[0]], products=[widget])

    assert source.fetch_orders("s1") == [widget_orders[0], widget_orders[1], undated]
    window = source.fetch_orders(
        "s1",
        datetime(2024, 3, 6, tzinfo=timezone.utc),
        datetime(2024, 3, 7, tzinfo=timezone.utc),
    )
    assert window == [widget_orders[1]]
    assert source.fetch_products("s2") == []
    assert source.fetch_products() == [widget]


def test_json_export_source(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(
        json.dumps(
            {
                "orders": [{"productId": "abc", "seller": "s1", "quantity": 1, "price": 9, "createdAt": 1709649000000}],
                "products": [{"_id": "abc", "id": "P-1", "seller": "s1", "name": "Mug"}],
                "cart": [{"buyer": "b1", "productId": "P-1", "seller": "s1"}],
                "wishlist": [{"buyer": "b2", "productId": "abc"}],
            }
        ),
        encoding="utf-8",
    )
    source = JsonExportSource(path)

    assert source.name == "json_export:export.json"
    assert len(source.fetch_orders("s1")) == 1
    assert source.fetch_products("s1")[0].external_id == "P-1"
    assert source.fetch_cart_entries()[0].product_ref == "P-1"
    assert source.fetch_wishlist_entries()[0].product_ref == "abc"


def test_json_export_rejects_non_object(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        JsonExportSource(path)


def test_mock_marketplace_is_reproducible():
    settings = MockMarketplaceSettings(seed=7, history_days=30, anchor=ANCHOR)
    first = MockMarketplaceSource(settings)
    second = MockMarketplaceSource(settings)

    assert first.fetch_all_orders() == second.fetch_all_orders()
    assert first.fetch_products() == second.fetch_products()
    assert first.fetch_cart_entries() == second.fetch_cart_entries()


def test_mock_marketplace_covers_messy_shapes():
    source = MockMarketplaceSource(MockMarketplaceSettings(seed=11, history_days=60, anchor=ANCHOR))
    orders = source.fetch_all_orders()
    products = source.fetch_products()
    store_ids = {product.store_id for product in products}

    assert {order.seller for order in orders} == {"acme", "globex"}
    assert any(order.product_ref in store_ids for order in orders)
    assert any(order.product_ref not in store_ids for order in orders)
    assert any(isinstance(order.buyer, str) for order in orders)
    assert any(isinstance(order.buyer, BuyerRef) for order in orders)
    assert all(order.created_at < ANCHOR for order in orders)
    assert any(product.external_id is None for product in products)


def test_in_window_reads_naive_moments_in_given_zone():
    plus_eight = timezone(timedelta(hours=8))
    start = datetime(2024, 3, 5, 0, tzinfo=plus_eight)
    end = datetime(2024, 3, 5, 5, tzinfo=plus_eight)
    naive = datetime(2024, 3, 5, 3, 0)

    assert in_window(naive, start, end, plus_eight)
    assert not in_window(naive, start, end)


def test_in_memory_source_sorts_naive_and_aware_in_given_zone():
    plus_eight = timezone(timedelta(hours=8))
    naive = OrderRecord(product_ref="x", seller="s1", created_at=datetime(2024, 3, 5, 10, 0))
    aware = OrderRecord(product_ref="x", seller="s1", created_at=datetime(2024, 3, 5, 3, 0, tzinfo=timezone.utc))
    source = InMemorySource(orders=[aware, naive])

    assert source.fetch_orders("s1", tz=plus_eight) == [naive, aware]
    assert source.fetch_orders("s1") == [aware, naive]
