"""卖家销售概要、买家订单概要与平台营收概要的轻量聚合。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..data_sources.base import (
    BuyerRef,
    CartRecord,
    OrderRecord,
    ProductRecord,
    WishlistRecord,
    buyer_identity,
)
from ..errors import InvalidArgumentError
from .identifiers import reconcile_catalog
from .numbers import to_float

DEFAULT_STATUS = "Pending"
DEFAULT_CURRENCY = "USD"


@dataclass
class SalesSummary:
    """
    卖家销售概要。

    属性:
        seller (str): 卖家标识。
        total_orders (int): 卖家订单数。
        top_product_id (Optional[str]): 下单次数最多的商品规范键。
        top_product (Optional[ProductRecord]): 对应的目录商品，不在目录中时为空。
        top_product_orders (int): 该商品的订单数。
        wishlist_count (int): 引用卖家商品的心愿单条目数。
        cart_count (int): 引用卖家商品的购物车条目数。
    """

    seller: str
    total_orders: int
    top_product_id: Optional[str]
    top_product: Optional[ProductRecord]
    top_product_orders: int
    wishlist_count: int
    cart_count: int


@dataclass
class OrderSummary:
    buyer: str
    total_orders: int
    total_spent: float
    status_breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class PlatformSummary:
    total_orders: int
    total_products: int
    revenue_by_currency: Dict[str, float] = field(default_factory=dict)


def build_sales_summary(
    *,
    seller: str,
    orders: Iterable[OrderRecord],
    products: Iterable[ProductRecord],
    cart_entries: Iterable[CartRecord],
    wishlist_entries: Iterable[WishlistRecord],
) -> SalesSummary:
    """
    功能说明:
        统计卖家订单数、下单次数最多的商品以及心愿单、购物车中的关注度。
        商品频次按规范键累计，两种标识形式的订单计入同一商品。
    参数:
        seller (str): 卖家标识。
        orders (Iterable[OrderRecord]): 订单集合。
        products (Iterable[ProductRecord]): 商品目录。
        cart_entries (Iterable[CartRecord]): 全部购物车条目。
        wishlist_entries (Iterable[WishlistRecord]): 全部心愿单条目。
    返回:
        SalesSummary: 销售概要。
    """
    if not seller:
        raise InvalidArgumentError("Missing seller")
    catalog = reconcile_catalog(products, seller)

    frequency: Dict[str, int] = {}
    total_orders = 0
    for order in orders:
        if order.seller != seller:
            continue
        total_orders += 1
        pid = catalog.resolve(order.product_ref)
        if pid:
            frequency[pid] = frequency.get(pid, 0) + 1

    top_product_id: Optional[str] = None
    if frequency:
        top_product_id = max(frequency, key=frequency.__getitem__)

    return SalesSummary(
        seller=seller,
        total_orders=total_orders,
        top_product_id=top_product_id,
        top_product=catalog.product(top_product_id),
        top_product_orders=frequency.get(top_product_id, 0) if top_product_id else 0,
        wishlist_count=sum(1 for entry in wishlist_entries if entry.product_ref in catalog.seller_ids),
        cart_count=sum(1 for entry in cart_entries if entry.product_ref in catalog.seller_ids),
    )


def _buyer_matches(order: OrderRecord, buyer: str) -> bool:
    if isinstance(order.buyer, BuyerRef):
        return buyer in (order.buyer.email, order.buyer.id)
    identifier, _ = buyer_identity(order.buyer)
    return identifier == buyer


def build_order_summary(*, buyer: str, orders: Iterable[OrderRecord]) -> OrderSummary:
    """
    功能说明:
        汇总买家（按邮箱或标识匹配）的订单数、消费总额与状态分布。
    参数:
        buyer (str): 买家邮箱或标识。
        orders (Iterable[OrderRecord]): 订单集合。
    返回:
        OrderSummary: 买家订单概要，消费总额保留两位小数。
    """
    if not buyer:
        raise InvalidArgumentError("Missing buyer")
    matched: List[OrderRecord] = [order for order in orders if _buyer_matches(order, buyer)]
    status_breakdown: Dict[str, int] = {}
    for order in matched:
        status = order.status or DEFAULT_STATUS
        status_breakdown[status] = status_breakdown.get(status, 0) + 1
    return OrderSummary(
        buyer=buyer,
        total_orders=len(matched),
        total_spent=round(sum(to_float(order.total) for order in matched), 2),
        status_breakdown=status_breakdown,
    )


def build_platform_summary(
    *,
    orders: Iterable[OrderRecord],
    products: Iterable[ProductRecord],
) -> PlatformSummary:
    """按币种分别累计订单总额，不做汇率换算。"""
    revenue_by_currency: Dict[str, float] = {}
    total_orders = 0
    for order in orders:
        total_orders += 1
        currency = order.currency or DEFAULT_CURRENCY
        revenue_by_currency[currency] = revenue_by_currency.get(currency, 0.0) + to_float(order.total)
    return PlatformSummary(
        total_orders=total_orders,
        total_products=sum(1 for _ in products),
        revenue_by_currency=revenue_by_currency,
    )
