"""提供可复现的多卖家模拟数据源，方便本地开发与测试。"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import List

from ..config import AppConfig
from .base import BuyerRef, CartRecord, OrderRecord, ProductRecord, WishlistRecord
from .memory import InMemorySource

COUNTRIES = ["NG", "US", "GB", "KE", "GH", "DE"]
STATUSES = ["Pending", "Shipped", "Delivered", "Cancelled"]


@dataclass
class MockMarketplaceSettings:
    """
    控制模拟数据源行为的配置项。

    属性:
        seed (int): 伪随机种子，确保数据可复现。
        sellers (List[str] | None): 需要生成的卖家列表，None 表示使用默认样例。
        products_per_seller (int): 每个卖家的商品数量。
        history_days (int): 生成订单的回溯天数。
        orders_per_day (int): 每个卖家每日的平均订单数。
        buyers (int): 买家池大小，决定复购比例。
        anchor (datetime | None): 历史的终点，None 表示当天零点（UTC）。
    """

    seed: int = 2024
    sellers: List[str] | None = None
    products_per_seller: int = 4
    history_days: int = 400
    orders_per_day: int = 3
    buyers: int = 40
    anchor: datetime | None = None


class MockMarketplaceSource(InMemorySource):
    """
    基于线性同余发生器的可复现模拟数据源。

    订单随机使用内部标识或外部标识引用商品，买家字段混合纯标识与结构化对象，
    部分订单缺少国家或规格价，以覆盖聚合层的容错路径。
    """

    def __init__(self, settings: MockMarketplaceSettings | None = None) -> None:
        """
        功能说明:
            创建模拟数据源实例并一次性生成全部集合。
        参数:
            settings (Optional[MockMarketplaceSettings]): 控制伪随机行为的配置。
        """
        self._settings = settings or MockMarketplaceSettings()
        sellers = list(self._settings.sellers) if self._settings.sellers else ["acme", "globex"]
        anchor = self._settings.anchor or datetime.combine(
            datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc
        )
        rng = _PseudoRandom(self._settings.seed)
        products = _generate_products(rng, sellers, self._settings.products_per_seller)
        orders = _generate_orders(rng, products, anchor, self._settings)
        cart, wishlist = _generate_engagement(rng, products, self._settings.buyers)
        super().__init__(
            orders=orders,
            products=products,
            cart_entries=cart,
            wishlist_entries=wishlist,
            name="mock_marketplace",
        )


def create_default_mock_source(config: AppConfig) -> MockMarketplaceSource:
    """
    功能说明:
        使用应用配置中的种子构建默认的模拟数据源。
    参数:
        config (AppConfig): 应用配置。
    返回:
        MockMarketplaceSource: 预配置的模拟数据源实例。
    """
    return MockMarketplaceSource(MockMarketplaceSettings(seed=config.data_source.seed))


def _generate_products(rng: "_PseudoRandom", sellers: List[str], per_seller: int) -> List[ProductRecord]:
    products: List[ProductRecord] = []
    for seller_index, seller in enumerate(sellers):
        for idx in range(per_seller):
            store_id = f"{seller_index:02x}{idx:06x}{rng.randint(0, 0xFFFFFF):06x}"
            # 最后一个商品不分配外部标识，模拟旧数据。
            external_id = f"{seller[:3].upper()}-{100 + idx}" if idx < per_seller - 1 else None
            products.append(
                ProductRecord(
                    store_id=store_id,
                    external_id=external_id,
                    seller=seller,
                    name=f"{seller.title()} Item {idx + 1}",
                    price=float(rng.randint(5, 120)),
                    image=f"/images/{store_id}",
                    cost=round(rng.uniform(0.5, 8.0), 2),
                    views=rng.randint(20, 600),
                )
            )
    return products


def _generate_orders(
    rng: "_PseudoRandom",
    products: List[ProductRecord],
    anchor: datetime,
    settings: MockMarketplaceSettings,
) -> List[OrderRecord]:
    orders: List[OrderRecord] = []
    start = anchor - timedelta(days=settings.history_days)
    sellers = sorted({product.seller for product in products if product.seller})
    for seller in sellers:
        catalog = [product for product in products if product.seller == seller]
        for day in range(settings.history_days):
            for _ in range(rng.randint(0, settings.orders_per_day * 2)):
                product = catalog[rng.randint(0, len(catalog))]
                # 随机使用两种标识之一引用商品。
                ref = product.external_id if product.external_id and rng.uniform(0, 1) < 0.6 else product.store_id
                created_at = start + timedelta(days=day, minutes=rng.randint(0, 24 * 60))
                buyer_index = rng.randint(0, settings.buyers)
                country = COUNTRIES[rng.randint(0, len(COUNTRIES))] if rng.uniform(0, 1) < 0.85 else None
                buyer = (
                    BuyerRef(id=f"buyer-{buyer_index}", email=f"buyer{buyer_index}@example.com", country=country)
                    if rng.uniform(0, 1) < 0.7
                    else f"buyer-{buyer_index}"
                )
                quantity = rng.randint(1, 4)
                use_variant = rng.uniform(0, 1) < 0.8
                fee = float(rng.randint(0, 10))
                orders.append(
                    OrderRecord(
                        product_ref=ref,
                        seller=seller,
                        buyer=buyer,
                        quantity=quantity,
                        variant_price=product.price if use_variant else None,
                        subtotal=None if use_variant else product.price,
                        delivery_fee=fee,
                        country=country if isinstance(buyer, str) else None,
                        created_at=created_at,
                        product_name=product.name,
                        product_image=product.image,
                        total=quantity * float(product.price) + fee,
                        status=STATUSES[rng.randint(0, len(STATUSES))],
                        currency="USD",
                        order_id=f"ord-{seller}-{len(orders):06d}",
                    )
                )
    return orders


def _generate_engagement(
    rng: "_PseudoRandom",
    products: List[ProductRecord],
    buyers: int,
) -> tuple[List[CartRecord], List[WishlistRecord]]:
    cart: List[CartRecord] = []
    wishlist: List[WishlistRecord] = []
    for product in products:
        for _ in range(rng.randint(0, 6)):
            ref = product.external_id or product.store_id
            cart.append(
                CartRecord(
                    buyer=f"buyer-{rng.randint(0, buyers)}",
                    product_ref=ref if rng.uniform(0, 1) < 0.5 else product.store_id,
                    seller=product.seller if rng.uniform(0, 1) < 0.9 else None,
                    name=product.name,
                    price=product.price,
                    image=product.image,
                    quantity=rng.randint(1, 3),
                )
            )
        for _ in range(rng.randint(0, 5)):
            wishlist.append(
                WishlistRecord(
                    buyer=f"buyer-{rng.randint(0, buyers)}",
                    product_ref=product.external_id or product.store_id,
                )
            )
    return cart, wishlist


class _PseudoRandom:
    """简单的线性同余伪随机数发生器，用于生成可复现的数据。"""

    def __init__(self, seed: int) -> None:
        self._state = seed % 2147483647 or 42

    def _next(self) -> float:
        # 使用 MINSTD 参数生成均匀分布的随机数。
        self._state = (self._state * 48271) % 2147483647
        return self._state / 2147483647

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self._next()

    def randint(self, low: int, high: int) -> int:
        """返回 [low, high) 区间内的整数。"""
        return int(low + (high - low) * self._next())
