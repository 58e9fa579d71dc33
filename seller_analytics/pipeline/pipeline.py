from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..config import AppConfig
from ..data_sources.base import (
    CartRecord,
    OrderRecord,
    ProductRecord,
    SellerDataSource,
    WishlistRecord,
)
from ..errors import InvalidArgumentError
from ..metrics.calculations import AnalyticsResult, aggregate_seller_analytics
from ..utils.dates import default_window, validate_granularity

logger = logging.getLogger(__name__)


@dataclass
class SellerSnapshot:
    """一次分析所需的四类集合，全部获取完成后才开始聚合。"""

    orders: List[OrderRecord]
    products: List[ProductRecord]
    cart_entries: List[CartRecord]
    wishlist_entries: List[WishlistRecord]


class AnalyticsPipeline:
    """调度数据采集与卖家分析聚合的主流程。"""

    def __init__(self, *, config: AppConfig, data_source: SellerDataSource) -> None:
        """初始化管道。

        参数:
            config: 全局配置对象，提供默认粒度与时区。
            data_source: 实际的数据源实现（JSON 导出或模拟）。
        """
        self._config = config
        self._data_source = data_source

    async def fetch_snapshot(
        self,
        seller: str,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> SellerSnapshot:
        """并发发起四个只读查询，互相之间没有顺序要求。

        参数:
            seller: 卖家标识。
            start: 订单窗口起点。
            end: 订单窗口终点。

        返回:
            SellerSnapshot，包含订单、商品、购物车与心愿单。
        """
        source = self._data_source
        orders, products, cart_entries, wishlist_entries = await asyncio.gather(
            asyncio.to_thread(source.fetch_orders, seller, start, end, self._config.analytics.tzinfo),
            asyncio.to_thread(source.fetch_products, seller),
            asyncio.to_thread(source.fetch_cart_entries),
            asyncio.to_thread(source.fetch_wishlist_entries),
        )
        logger.info(
            "Fetched snapshot seller=%s source=%s orders=%d products=%d cart=%d wishlist=%d",
            seller,
            source.name,
            len(orders),
            len(products),
            len(cart_entries),
            len(wishlist_entries),
        )
        return SellerSnapshot(
            orders=orders,
            products=products,
            cart_entries=cart_entries,
            wishlist_entries=wishlist_entries,
        )

    async def arun(
        self,
        *,
        seller: str,
        granularity: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsResult:
        """执行一次分析。

        参数:
            seller: 卖家标识。
            granularity: 时间粒度，未提供则使用配置默认值。
            start: 自定义统计开始时间，需与 end 同时提供，否则使用粒度对应的默认窗口。
            end: 自定义统计结束时间。
            now: 注入的当前时间。

        返回:
            AnalyticsResult，包含时间序列、利润表、漏斗等全部字段。
        """
        if not seller:
            raise InvalidArgumentError("Seller parameter is required")
        granularity = validate_granularity(granularity or self._config.analytics.default_range)
        tz = self._config.analytics.tzinfo

        if start is None or end is None:
            start, end = default_window(granularity, now or datetime.now(tz))
        elif start > end:
            raise InvalidArgumentError("Start must not be later than end")

        snapshot = await self.fetch_snapshot(seller, start, end)
        return aggregate_seller_analytics(
            seller=seller,
            granularity=granularity,
            orders=snapshot.orders,
            products=snapshot.products,
            cart_entries=snapshot.cart_entries,
            wishlist_entries=snapshot.wishlist_entries,
            start=start,
            end=end,
            now=now,
            tz=tz,
        )

    def run(self, **kwargs) -> AnalyticsResult:
        """同步入口，参数同 :meth:`arun`。不能在已运行的事件循环中调用。"""
        return asyncio.run(self.arun(**kwargs))
