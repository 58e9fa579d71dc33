"""将购物车、心愿单并入商品累计，并派生利润、漏斗、客户与地区等汇总。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Set, Tuple, Union

from ..data_sources.base import CartRecord, WishlistRecord
from .bucketing import HOURS_PER_DAY, ProductAccumulator
from .identifiers import CatalogIndex
from .numbers import first_nonzero, to_float, to_quantity


@dataclass
class ProfitMargin:
    """
    单个已售商品的利润表行。

    属性:
        name (str): 商品名称。
        price (float): 单价。
        cost (float): 单位成本。
        sold (float): 销量。
        total_revenue (float): sold × (price + cost)。
        profit_per_unit (float): price − cost。
        total_profit (float): profit_per_unit × sold。
    """

    name: str
    price: float
    cost: float
    sold: float
    total_revenue: float
    profit_per_unit: float
    total_profit: float


@dataclass
class ConversionFunnel:
    views: int
    added_to_cart: int
    checkout: int
    completed: int


@dataclass
class CustomerInsights:
    total: int
    repeat: int
    new: int


@dataclass
class RegionSales:
    country: str
    amount: float


@dataclass
class BestTimeToSell:
    labels: List[str]
    sales: List[float]


def merge_cart(
    accumulators: Dict[str, ProductAccumulator],
    cart_entries: Iterable[CartRecord],
    catalog: CatalogIndex,
) -> int:
    """
    功能说明:
        过滤出引用卖家商品的购物车条目，按规范键汇总数量并写入 `in_cart`。
        卖家标签可能过期，因此只以标识集合作为过滤依据。
    参数:
        accumulators (Dict[str, ProductAccumulator]): 订单阶段产出的商品累计，原地更新。
        cart_entries (Iterable[CartRecord]): 未过滤的购物车条目。
        catalog (CatalogIndex): 商品标识对账结果。
    返回:
        int: 命中的购物车条目数。
    """
    matched = [entry for entry in cart_entries if entry.product_ref in catalog.seller_ids]
    counts, samples = _group_by_product(matched, catalog)
    for pid, quantity in counts.items():
        accumulator = accumulators.get(pid)
        if accumulator is None:
            entry = samples[pid]
            product = catalog.product(entry.product_ref)
            accumulator = ProductAccumulator(
                id=pid,
                name=(product.name if product else None) or entry.name or f"Product {pid}",
                price=first_nonzero(
                    product.price if product else None,
                    entry.variant_price,
                    entry.price,
                ),
                cost=catalog.costs.get(entry.product_ref, 0.0),
                image=catalog.images.get(entry.product_ref) or entry.image,
            )
            accumulators[pid] = accumulator
        accumulator.in_cart = quantity
    return len(matched)


def merge_wishlist(
    accumulators: Dict[str, ProductAccumulator],
    wishlist_entries: Iterable[WishlistRecord],
    catalog: CatalogIndex,
    order_refs: Set[str],
) -> int:
    """
    功能说明:
        心愿单条目没有卖家字段，只有当商品属于卖家目录或出现在卖家订单中时才计入。
    参数:
        accumulators (Dict[str, ProductAccumulator]): 商品累计，原地更新 `in_wishlist`。
        wishlist_entries (Iterable[WishlistRecord]): 未过滤的心愿单条目。
        catalog (CatalogIndex): 商品标识对账结果。
        order_refs (Set[str]): 卖家订单引用过的商品标识。
    返回:
        int: 命中的心愿单条目数。
    """
    matched = [
        entry
        for entry in wishlist_entries
        if entry.product_ref in catalog.seller_ids or entry.product_ref in order_refs
    ]
    counts, samples = _group_by_product(matched, catalog)
    for pid, quantity in counts.items():
        accumulator = accumulators.get(pid)
        if accumulator is None:
            product = catalog.product(samples[pid].product_ref)
            accumulator = ProductAccumulator(
                id=pid,
                name=(product.name if product else None) or f"Product {pid}",
                price=to_float(product.price) if product else 0.0,
                cost=catalog.costs.get(samples[pid].product_ref, 0.0),
                image=catalog.images.get(samples[pid].product_ref),
            )
            accumulators[pid] = accumulator
        accumulator.in_wishlist = quantity
    return len(matched)


def _group_by_product(
    entries: Sequence[Union[CartRecord, WishlistRecord]],
    catalog: CatalogIndex,
) -> Tuple[Dict[str, float], Dict[str, Union[CartRecord, WishlistRecord]]]:
    counts: Dict[str, float] = {}
    samples: Dict[str, Union[CartRecord, WishlistRecord]] = {}
    for entry in entries:
        pid = catalog.resolve(entry.product_ref)
        if not pid:
            continue
        counts[pid] = counts.get(pid, 0) + to_quantity(entry.quantity)
        samples.setdefault(pid, entry)
    return counts, samples


def top_products(accumulators: Mapping[str, ProductAccumulator]) -> List[ProductAccumulator]:
    """已售商品，按销售额（含运费）降序。"""
    sold = [item for item in accumulators.values() if item.sold > 0]
    return sorted(sold, key=lambda item: item.revenue, reverse=True)


def profit_margins(accumulators: Mapping[str, ProductAccumulator]) -> List[ProfitMargin]:
    """
    功能说明:
        为每个已售商品生成利润表行。
    参数:
        accumulators (Mapping[str, ProductAccumulator]): 合并后的商品累计。
    返回:
        List[ProfitMargin]: 与累计顺序一致的利润表。
    """
    margins: List[ProfitMargin] = []
    for item in accumulators.values():
        if item.sold <= 0:
            continue
        profit_per_unit = item.price - item.cost
        margins.append(
            ProfitMargin(
                name=item.name,
                price=item.price,
                cost=item.cost,
                sold=item.sold,
                total_revenue=item.sold * (item.price + item.cost),
                profit_per_unit=profit_per_unit,
                total_profit=profit_per_unit * item.sold,
            )
        )
    return margins


def conversion_funnel(catalog: CatalogIndex, added_to_cart: int, order_count: int) -> ConversionFunnel:
    """浏览量取卖家目录中各商品浏览计数之和；下单与完成没有中间状态，取同一订单数。"""
    views = sum(int(to_float(product.views)) for product in catalog.catalog_products)
    return ConversionFunnel(
        views=views,
        added_to_cart=added_to_cart,
        checkout=order_count,
        completed=order_count,
    )


def customer_insights(customer_orders: Mapping[str, int]) -> CustomerInsights:
    total = len(customer_orders)
    repeat = sum(1 for count in customer_orders.values() if count > 1)
    return CustomerInsights(total=total, repeat=repeat, new=total - repeat)


def sales_by_region(country_totals: Mapping[str, float]) -> List[RegionSales]:
    """按金额降序排列，金额相同按国家代码排序以保证输出稳定。"""
    ordered = sorted(country_totals.items(), key=lambda item: (-item[1], item[0]))
    return [RegionSales(country=country, amount=amount) for country, amount in ordered]


def best_time_to_sell(hour_histogram: Sequence[float]) -> BestTimeToSell:
    labels = [f"{hour}:00" for hour in range(HOURS_PER_DAY)]
    return BestTimeToSell(labels=labels, sales=list(hour_histogram))


def sorted_series(time_series: Mapping[str, float]) -> tuple[List[str], List[float]]:
    """返回按分桶键升序排列的 (键, 收入) 两个平行列表。"""
    keys = sorted(time_series)
    return keys, [time_series[key] for key in keys]
