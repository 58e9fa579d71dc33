"""单次遍历订单，按时间分桶累计收入，同时统计小时分布、国家分布与复购频次。"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional, Set

from ..data_sources.base import OrderRecord, buyer_identity
from ..utils.dates import bucket_key, to_zone, validate_granularity
from .identifiers import CatalogIndex
from .numbers import first_nonzero, to_float, to_quantity

logger = logging.getLogger(__name__)

UNKNOWN_COUNTRY = "Unknown"
UNKNOWN_PRODUCT = "unknown"
HOURS_PER_DAY = 24


@dataclass
class ProductAccumulator:
    """
    单个逻辑商品在一次聚合调用中的累计记录。

    属性:
        id (str): 规范商品键。
        name (str): 展示名称。
        price (float): 单价。
        cost (float): 单位成本。
        image (Optional[str]): 图片引用。
        sold (float): 累计销量。
        in_cart (float): 当前在购物车中的数量。
        in_wishlist (float): 当前在心愿单中的数量。
        delivery_fees (float): 累计收取的运费。
    """

    id: str
    name: str
    price: float
    cost: float
    image: Optional[str] = None
    sold: float = 0
    in_cart: float = 0
    in_wishlist: float = 0
    delivery_fees: float = 0.0

    @property
    def revenue(self) -> float:
        return self.sold * self.price + self.delivery_fees


@dataclass
class OrderAggregation:
    """
    订单遍历的全部产出。

    属性:
        accumulators (Dict[str, ProductAccumulator]): 规范键 -> 商品累计。
        time_series (Dict[str, float]): 分桶键 -> 收入。
        hour_histogram (List[float]): 0-23 点的收入。
        country_totals (Dict[str, float]): 国家代码 -> 收入。
        customer_orders (Dict[str, int]): 买家标识 -> 订单数。
        order_refs (Set[str]): 卖家订单引用过的商品标识（原始与规范形式）。
        earnings (float): 总收入。
        order_count (int): 订单数。
    """

    accumulators: Dict[str, ProductAccumulator] = field(default_factory=dict)
    time_series: Dict[str, float] = field(default_factory=dict)
    hour_histogram: List[float] = field(default_factory=lambda: [0.0] * HOURS_PER_DAY)
    country_totals: Dict[str, float] = field(default_factory=dict)
    customer_orders: Dict[str, int] = field(default_factory=dict)
    order_refs: Set[str] = field(default_factory=set)
    earnings: float = 0.0
    order_count: int = 0


def order_unit_price(order: OrderRecord) -> float:
    """规格价 -> 小计 -> 订单金额 -> 通用价格，取第一个有效的非零值。"""
    return first_nonzero(order.variant_price, order.subtotal, order.total_amount, order.price)


def aggregate_orders(
    orders: Iterable[OrderRecord],
    *,
    seller: str,
    granularity: str,
    catalog: CatalogIndex,
    tz: tzinfo,
) -> OrderAggregation:
    """
    功能说明:
        遍历一次订单，累计每个商品的销量与运费，并生成时间序列、
        小时分布、国家分布与买家下单频次。
    参数:
        orders (Iterable[OrderRecord]): 全量或已过滤的订单。
        seller (str): 目标卖家，其他卖家的订单会被跳过。
        granularity (str): 时间粒度。
        catalog (CatalogIndex): 商品标识对账结果。
        tz (tzinfo): 分桶与小时分布使用的时区。
    返回:
        OrderAggregation: 聚合结果。
    """
    validate_granularity(granularity)
    result = OrderAggregation()
    skipped_timestamps = 0

    for order in orders:
        if order.seller != seller:
            continue

        ref = order.product_ref
        pid = catalog.resolve(ref) or UNKNOWN_PRODUCT
        price = order_unit_price(order)
        quantity = to_quantity(order.quantity)
        delivery_fee = to_float(order.delivery_fee)
        revenue = quantity * price + delivery_fee

        buyer_id, buyer_country = buyer_identity(order.buyer)
        country = order.country or buyer_country or UNKNOWN_COUNTRY
        result.country_totals[country] = result.country_totals.get(country, 0.0) + revenue

        accumulator = result.accumulators.get(pid)
        if accumulator is None:
            accumulator = _seed_from_order(order, pid, price, quantity, delivery_fee, catalog)
            result.accumulators[pid] = accumulator
        accumulator.sold += quantity
        accumulator.delivery_fees += delivery_fee

        result.earnings += revenue
        result.order_count += 1
        result.order_refs.add(pid)
        if ref:
            result.order_refs.add(ref)

        if order.created_at is None:
            skipped_timestamps += 1
        else:
            moment = to_zone(order.created_at, tz)
            key = bucket_key(moment, granularity)
            result.time_series[key] = result.time_series.get(key, 0.0) + revenue
            result.hour_histogram[moment.hour] += revenue

        if buyer_id:
            result.customer_orders[buyer_id] = result.customer_orders.get(buyer_id, 0) + 1

    logger.debug(
        "Aggregated %d orders for seller=%s into %d products (%d without timestamp)",
        result.order_count,
        seller,
        len(result.accumulators),
        skipped_timestamps,
    )
    return result


def _seed_from_order(
    order: OrderRecord,
    pid: str,
    price: float,
    quantity: float,
    delivery_fee: float,
    catalog: CatalogIndex,
) -> ProductAccumulator:
    product = catalog.product(order.product_ref)
    name = (product.name if product else None) or order.product_name or f"Product {pid}"
    if order.product_ref in catalog.costs:
        cost = catalog.costs[order.product_ref]
    else:
        cost = delivery_fee / quantity
    image = catalog.images.get(order.product_ref) if order.product_ref else None
    return ProductAccumulator(
        id=pid,
        name=name,
        price=price,
        cost=cost,
        image=image or order.product_image,
    )
