from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from .config import AppConfig
from .data_sources.base import SellerDataSource
from .data_sources.json_export import JsonExportSource
from .data_sources.mock_marketplace import create_default_mock_source
from .errors import InvalidArgumentError
from .metrics.summaries import build_order_summary, build_platform_summary, build_sales_summary
from .pipeline.pipeline import AnalyticsPipeline
from .reporting.formatter import (
    order_summary_to_dict,
    platform_summary_to_dict,
    result_to_dict,
    sales_summary_to_dict,
)
from .utils.dates import parse_boundary

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    config: AppConfig
    data_source: SellerDataSource
    llm: Optional[ChatOpenAI] = None


def create_data_source(config: AppConfig) -> SellerDataSource:
    if config.data_source.kind == "json":
        return JsonExportSource(config.data_source.path)
    return create_default_mock_source(config)


def create_service_context(
    config: AppConfig,
    *,
    data_source: Optional[SellerDataSource] = None,
    llm: Optional[ChatOpenAI] = None,
) -> ServiceContext:
    data_source = data_source or create_data_source(config)
    api_key = config.openai_api_key or os.getenv("OPENAI_API_KEY")
    if llm is None and api_key:
        llm = ChatOpenAI(
            api_key=api_key,
            model=config.openai_model,
            temperature=config.openai_temperature,
        )
    return ServiceContext(config=config, data_source=data_source, llm=llm)


async def compute_seller_analytics(
    context: ServiceContext,
    *,
    seller: str,
    granularity: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Dict[str, Any]:
    pipeline = AnalyticsPipeline(config=context.config, data_source=context.data_source)
    result = await pipeline.arun(
        seller=seller,
        granularity=granularity,
        start=parse_boundary(start, context.config.analytics.tzinfo),
        end=parse_boundary(end, context.config.analytics.tzinfo),
    )
    return {"success": True, "data": result_to_dict(result)}


def seller_sales_summary(context: ServiceContext, *, seller: str) -> Dict[str, Any]:
    if not seller:
        raise InvalidArgumentError("Missing seller")
    source = context.data_source
    summary = build_sales_summary(
        seller=seller,
        orders=source.fetch_orders(seller),
        products=source.fetch_products(seller),
        cart_entries=source.fetch_cart_entries(),
        wishlist_entries=source.fetch_wishlist_entries(),
    )
    return {"success": True, "data": sales_summary_to_dict(summary)}


def buyer_order_summary(context: ServiceContext, *, buyer: str) -> Dict[str, Any]:
    summary = build_order_summary(buyer=buyer, orders=context.data_source.fetch_all_orders())
    return {"success": True, "data": order_summary_to_dict(summary)}


def platform_summary(context: ServiceContext) -> Dict[str, Any]:
    source = context.data_source
    summary = build_platform_summary(orders=source.fetch_all_orders(), products=source.fetch_products())
    return {"success": True, "data": platform_summary_to_dict(summary)}


def generate_analytics_insights(
    context: ServiceContext,
    *,
    analytics: Dict[str, Any],
    focus: Optional[str] = None,
) -> Dict[str, Any]:
    if context.llm is None:
        raise RuntimeError("OPENAI_API_KEY 未配置，无法生成洞察。")
    instructions = (
        "你是一名电商店铺运营分析师，请基于给定的卖家分析数据生成结构化洞察。"
        "按照“总体表现”“亮点商品”“地区与时段”“风险/建议”四个部分输出。"
    )
    if focus:
        instructions += f" 优先关注：{focus}。"
    logger.info("Generating insights for store=%s", analytics.get("storeName"))
    response = context.llm.invoke(
        [
            SystemMessage(content=instructions),
            HumanMessage(content=f"请分析以下 JSON 数据：{json.dumps(analytics, ensure_ascii=False)}"),
        ]
    )
    return {"report": {"analytics": analytics, "insights": response.content}}
