"""卖家分析聚合引擎：对账商品标识、遍历订单、合并购物车与心愿单并派生汇总。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Optional

from ..data_sources.base import CartRecord, OrderRecord, ProductRecord, WishlistRecord
from ..errors import InvalidArgumentError
from ..utils.dates import default_window, validate_granularity
from .bucketing import ProductAccumulator, aggregate_orders
from .identifiers import reconcile_catalog
from .merger import (
    BestTimeToSell,
    ConversionFunnel,
    CustomerInsights,
    ProfitMargin,
    RegionSales,
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

logger = logging.getLogger(__name__)


@dataclass
class DateRange:
    start: datetime
    end: datetime


@dataclass
class AnalyticsResult:
    """
    一次卖家分析调用的完整结果。

    属性:
        store_name (str): 卖家标识。
        products (List[ProductAccumulator]): 已售商品，按销售额降序。
        earnings (float): 总收入。
        total_orders (int): 订单数。
        total_products (int): 卖家目录中的商品数。
        avg_order_value (float): 客单价。
        months (List[str]): 升序的分桶键。
        monthly_sales (List[float]): 与 `months` 平行的收入。
        best_time_to_sell (BestTimeToSell): 24 小时收入分布。
        sales_by_region (List[RegionSales]): 国家收入，降序。
        profit_margins (List[ProfitMargin]): 利润表。
        funnel (ConversionFunnel): 转化漏斗。
        customers (CustomerInsights): 客户洞察。
        date_range (DateRange): 统计窗口。
        range (str): 回显的时间粒度。
    """

    store_name: str
    products: List[ProductAccumulator]
    earnings: float
    total_orders: int
    total_products: int
    avg_order_value: float
    months: List[str]
    monthly_sales: List[float]
    best_time_to_sell: BestTimeToSell
    sales_by_region: List[RegionSales]
    profit_margins: List[ProfitMargin]
    funnel: ConversionFunnel
    customers: CustomerInsights
    date_range: DateRange
    range: str


def aggregate_seller_analytics(
    *,
    seller: str,
    granularity: str,
    orders: Iterable[OrderRecord],
    products: Iterable[ProductRecord],
    cart_entries: Iterable[CartRecord],
    wishlist_entries: Iterable[WishlistRecord],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> AnalyticsResult:
    """
    功能说明:
        基于已获取的四类集合计算卖家分析结果。每次调用都构建新的累计表，
        相同输入与相同 `now` 得到相同输出。
    参数:
        seller (str): 卖家标识，缺失时抛出 InvalidArgumentError。
        granularity (str): hour/day/week/month/year。
        orders (Iterable[OrderRecord]): 全量或已按卖家过滤的订单。
        products (Iterable[ProductRecord]): 全量或已按卖家过滤的商品目录。
        cart_entries (Iterable[CartRecord]): 全部购物车条目。
        wishlist_entries (Iterable[WishlistRecord]): 全部心愿单条目。
        start (Optional[datetime]): 统计窗口起点，仅用于回显。
        end (Optional[datetime]): 统计窗口终点，仅用于回显。
        now (Optional[datetime]): 注入的当前时间，用于推导默认窗口。
        tz (tzinfo): 分桶与小时分布使用的时区。
    返回:
        AnalyticsResult: 聚合结果。
    """
    if not seller:
        raise InvalidArgumentError("Seller parameter is required")
    validate_granularity(granularity)

    # 1. 标识对账
    catalog = reconcile_catalog(products, seller)

    # 2. 订单遍历
    aggregation = aggregate_orders(
        orders,
        seller=seller,
        granularity=granularity,
        catalog=catalog,
        tz=tz,
    )

    # 3. 合并购物车与心愿单
    accumulators = aggregation.accumulators
    cart_matches = merge_cart(accumulators, cart_entries, catalog)
    merge_wishlist(accumulators, wishlist_entries, catalog, aggregation.order_refs)

    months, monthly_sales = sorted_series(aggregation.time_series)
    total_orders = aggregation.order_count
    earnings = aggregation.earnings

    result = AnalyticsResult(
        store_name=seller,
        products=top_products(accumulators),
        earnings=earnings,
        total_orders=total_orders,
        total_products=len(catalog.catalog_products),
        avg_order_value=earnings / total_orders if total_orders else 0.0,
        months=months,
        monthly_sales=monthly_sales,
        best_time_to_sell=best_time_to_sell(aggregation.hour_histogram),
        sales_by_region=sales_by_region(aggregation.country_totals),
        profit_margins=profit_margins(accumulators),
        funnel=conversion_funnel(catalog, cart_matches, total_orders),
        customers=customer_insights(aggregation.customer_orders),
        date_range=_resolve_range(granularity, start, end, now, tz),
        range=granularity,
    )
    logger.debug(
        "Seller analytics computed seller=%s range=%s orders=%d earnings=%.2f",
        seller,
        granularity,
        total_orders,
        earnings,
    )
    return result


def _resolve_range(
    granularity: str,
    start: Optional[datetime],
    end: Optional[datetime],
    now: Optional[datetime],
    tz: tzinfo,
) -> DateRange:
    if start is not None and end is not None:
        if start > end:
            raise InvalidArgumentError("Start must not be later than end")
        return DateRange(start=start, end=end)
    default_start, default_end = default_window(granularity, now or datetime.now(tz))
    return DateRange(start=start or default_start, end=end or default_end)
