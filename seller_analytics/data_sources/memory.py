"""基于内存集合的数据源，供 JSON 导出与模拟数据复用过滤逻辑。"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import List, Optional, Sequence

from .base import (
    CartRecord,
    OrderRecord,
    ProductRecord,
    SellerDataSource,
    WishlistRecord,
    as_aware,
    in_window,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class InMemorySource(SellerDataSource):
    """持有一份只读快照，按调用参数过滤后返回副本列表。"""

    def __init__(
        self,
        *,
        orders: Sequence[OrderRecord] = (),
        products: Sequence[ProductRecord] = (),
        cart_entries: Sequence[CartRecord] = (),
        wishlist_entries: Sequence[WishlistRecord] = (),
        name: str = "in_memory",
    ) -> None:
        self.name = name
        self._orders = list(orders)
        self._products = list(products)
        self._cart_entries = list(cart_entries)
        self._wishlist_entries = list(wishlist_entries)

    def fetch_orders(
        self,
        seller: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        tz: tzinfo = timezone.utc,
    ) -> List[OrderRecord]:
        matched = [
            order
            for order in self._orders
            if order.seller == seller and in_window(order.created_at, start, end, tz)
        ]
        # 没有时间的订单排在最后，保持与按 createdAt 升序查询一致。
        return sorted(
            matched,
            key=lambda order: (
                order.created_at is None,
                as_aware(order.created_at, tz) if order.created_at else _EPOCH,
            ),
        )

    def fetch_all_orders(self) -> List[OrderRecord]:
        return list(self._orders)

    def fetch_products(self, seller: Optional[str] = None) -> List[ProductRecord]:
        if seller is None:
            return list(self._products)
        return [product for product in self._products if product.seller == seller]

    def fetch_cart_entries(self) -> List[CartRecord]:
        return list(self._cart_entries)

    def fetch_wishlist_entries(self) -> List[WishlistRecord]:
        return list(self._wishlist_entries)
