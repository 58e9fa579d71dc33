from datetime import datetime, timezone

import pytest

from seller_analytics.data_sources.base import BuyerRef, OrderRecord, ProductRecord
from seller_analytics.data_sources.memory import InMemorySource


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def widget() -> ProductRecord:
    return ProductRecord(
        store_id="p1",
        external_id="P-100",
        seller="s1",
        name="Widget",
        price=10,
        cost=2,
        image="/images/p1",
        views=100,
    )


@pytest.fixture
def widget_orders() -> list:
    """同一商品分别以内部标识与外部标识下单的两笔订单。"""
    return [
        OrderRecord(
            product_ref="p1",
            seller="s1",
            buyer=BuyerRef(id="b1", email="b1@example.com", country="NG"),
            quantity=3,
            variant_price=10,
            delivery_fee=5,
            created_at=utc(2024, 3, 5, 14, 30),
            total=35,
            status="Delivered",
        ),
        OrderRecord(
            product_ref="P-100",
            seller="s1",
            buyer="b1",
            quantity=2,
            variant_price=10,
            delivery_fee=0,
            country="US",
            created_at=utc(2024, 3, 6, 9, 0),
            total=20,
        ),
    ]


@pytest.fixture
def widget_source(widget, widget_orders) -> InMemorySource:
    return InMemorySource(orders=widget_orders, products=[widget])
