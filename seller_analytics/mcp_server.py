"""Seller Analytics MCP 服务模块，基于 FastMCP 暴露卖家分析工具与配置资源。"""

import argparse
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import MethodType
from typing import Any, Dict, List, Optional, cast

from typing_extensions import TypedDict

from mcp.server.fastmcp import Context, FastMCP

from seller_analytics.config import AppConfig
from seller_analytics.services import (
    ServiceContext,
    buyer_order_summary as _buyer_order_summary,
    compute_seller_analytics as _compute_seller_analytics,
    create_service_context,
    generate_analytics_insights as _generate_analytics_insights,
    platform_summary as _platform_summary,
    seller_sales_summary as _seller_sales_summary,
)
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.routing import Route


logger = logging.getLogger(__name__)
logging.basicConfig(level=os.getenv('MCP_SERVER_LOG_LEVEL', 'INFO').upper(), format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

GLOBAL_SERVICE_CONTEXT: Optional[ServiceContext] = None


class ProductPayload(TypedDict):
    id: str
    name: str
    price: float
    cost: float
    sold: float
    inCart: float
    inWishlist: float
    deliveryFees: float
    image: Optional[str]


class BestTimeToSellPayload(TypedDict):
    labels: List[str]
    sales: List[float]


class RegionPayload(TypedDict):
    country: str
    amount: float


class ProfitMarginPayload(TypedDict):
    name: str
    price: float
    cost: float
    sold: float
    totalRevenue: float
    profitPerUnit: float
    totalProfit: float


class FunnelPayload(TypedDict):
    views: int
    addedToCart: int
    checkout: int
    completed: int


class CustomersPayload(TypedDict):
    total: int
    repeat: int
    new: int


class DateRangePayload(TypedDict):
    start: str
    end: str


class SellerAnalyticsPayload(TypedDict):
    storeName: str
    products: List[ProductPayload]
    earnings: float
    totalOrders: int
    totalProducts: int
    avgOrderValue: float
    months: List[str]
    monthlySales: List[float]
    bestTimeToSell: BestTimeToSellPayload
    salesByRegion: List[RegionPayload]
    profitMargins: List[ProfitMarginPayload]
    funnel: FunnelPayload
    customers: CustomersPayload
    dateRange: DateRangePayload
    range: str


class SellerAnalyticsResult(TypedDict):
    success: bool
    data: SellerAnalyticsPayload


class TopProductPayload(TypedDict):
    id: str
    name: Optional[str]
    price: Optional[float]
    image: Optional[str]
    orders: int


class SalesSummaryPayload(TypedDict):
    seller: str
    totalOrders: int
    topProduct: Optional[TopProductPayload]
    wishlistCount: int
    cartCount: int


class SalesSummaryResult(TypedDict):
    success: bool
    data: SalesSummaryPayload


class OrderSummaryPayload(TypedDict):
    buyer: str
    totalOrders: int
    totalSpent: str
    statusBreakdown: Dict[str, int]


class OrderSummaryResult(TypedDict):
    success: bool
    data: OrderSummaryPayload


class PlatformSummaryPayload(TypedDict):
    totalOrders: int
    totalProducts: int
    revenueByCurrency: Dict[str, float]


class PlatformSummaryResult(TypedDict):
    success: bool
    data: PlatformSummaryPayload


class InsightsReportPayload(TypedDict):
    analytics: SellerAnalyticsPayload
    insights: str


class GenerateAnalyticsInsightsResult(TypedDict):
    report: InsightsReportPayload


class AnalyticsAppContext:
    """封装 MCP 生命周期中共享的业务依赖。

    Attributes:
        service_context (ServiceContext): 包含配置、数据源、LLM 的聚合上下文。
    """

    def __init__(self, service_context: ServiceContext) -> None:
        self.service_context = service_context


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AnalyticsAppContext]:
    """FastMCP 生命周期钩子，创建并共享业务上下文。

    Args:
        server (FastMCP): FastMCP 框架传入的服务器实例，本实现中仅为保持签名一致。

    Yields:
        AnalyticsAppContext: 包含业务依赖的上下文对象，供请求期间复用。
    """

    service_context = create_service_context(AppConfig.from_env())
    global GLOBAL_SERVICE_CONTEXT
    GLOBAL_SERVICE_CONTEXT = service_context
    logger.info("Service context ready source=%s", service_context.data_source.name)
    yield AnalyticsAppContext(service_context=service_context)


mcp = FastMCP(
    name="Seller Analytics",
    instructions=(
        "Expose multi-tenant shop analytics through MCP tools and resources. "
        "Use seller_analytics for time-bucketed revenue, regions, margins and the funnel."
    ),
    lifespan=app_lifespan,
    streamable_http_path="/mcp",
)

_original_streamable_http_app = mcp.streamable_http_app


def _streamable_http_app_with_cors(self: FastMCP):
    app = _original_streamable_http_app()

    async def _handle_options(request):
        requested_headers = request.headers.get("Access-Control-Request-Headers", "")
        allow_headers = requested_headers or "*"
        return Response(
            status_code=204,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
                "Access-Control-Allow-Headers": allow_headers,
                "Access-Control-Max-Age": "600",
            },
        )

    app.router.routes.insert(
        0,
        Route(
            self.settings.streamable_http_path,
            _handle_options,
            methods=["OPTIONS"],
        ),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["MCP-Session-Id"],
    )
    return app


mcp.streamable_http_app = MethodType(_streamable_http_app_with_cors, mcp)


# Inspector 会读取该列表自动安装调试所需的三方依赖。
mcp.dependencies = [
    "langchain-openai",
]


def _service(ctx: Context) -> ServiceContext:
    """从请求上下文里提取共享业务依赖。

    Args:
        ctx (Context): FastMCP 提供的请求上下文。

    Returns:
        ServiceContext: 预先构建的业务上下文实例。
    """

    try:
        return ctx.request_context.lifespan_context.service_context
    except (AttributeError, ValueError):
        pass
    if GLOBAL_SERVICE_CONTEXT is not None:
        return GLOBAL_SERVICE_CONTEXT
    raise RuntimeError("Service context is not available; lifespan may not be initialized.")


@mcp.resource("seller-analytics://config", mime_type="application/json")
def read_configuration() -> Dict[str, Any]:
    """返回当前分析配置，供客户端参考默认参数。

    Returns:
        Dict[str, Any]: 默认粒度、时区与数据源信息。
    """

    config = GLOBAL_SERVICE_CONTEXT.config if GLOBAL_SERVICE_CONTEXT else AppConfig.from_env()
    return {
        "default_range": config.analytics.default_range,
        "timezone": config.analytics.timezone,
        "data_source": config.data_source.kind,
        "insights_enabled": bool(GLOBAL_SERVICE_CONTEXT and GLOBAL_SERVICE_CONTEXT.llm),
    }


@mcp.tool(name="seller_analytics")
async def tool_seller_analytics(
    ctx: Context,
    seller: str,
    range: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> SellerAnalyticsResult:
    """计算卖家的分时段收入、小时分布、地区分布、利润表、转化漏斗与客户洞察。

    Args:
        ctx (Context): FastMCP 请求上下文。
        seller (str): 卖家标识。
        range (Optional[str]): hour/day/week/month/year，默认取配置。
        start (Optional[str]): 起始时间（ISO 字符串），需与 end 同时提供。
        end (Optional[str]): 结束时间（ISO 字符串）。

    Returns:
        Dict[str, Any]: `{"success": true, "data": {...}}` 结构的分析结果。
    """

    result = await _compute_seller_analytics(
        _service(ctx),
        seller=seller,
        granularity=range,
        start=start,
        end=end,
    )
    return cast(SellerAnalyticsResult, result)


@mcp.tool(name="seller_sales_summary")
def tool_seller_sales_summary(ctx: Context, seller: str) -> SalesSummaryResult:
    """返回卖家订单数、下单最多的商品以及购物车、心愿单关注度。

    Args:
        ctx (Context): FastMCP 请求上下文。
        seller (str): 卖家标识。

    Returns:
        Dict[str, Any]: 销售概要。
    """

    return cast(SalesSummaryResult, _seller_sales_summary(_service(ctx), seller=seller))


@mcp.tool(name="buyer_order_summary")
def tool_buyer_order_summary(ctx: Context, buyer: str) -> OrderSummaryResult:
    """按买家邮箱或标识汇总订单数、消费额与状态分布。

    Args:
        ctx (Context): FastMCP 请求上下文。
        buyer (str): 买家邮箱或标识。

    Returns:
        Dict[str, Any]: 买家订单概要。
    """

    return cast(OrderSummaryResult, _buyer_order_summary(_service(ctx), buyer=buyer))


@mcp.tool(name="platform_summary")
def tool_platform_summary(ctx: Context) -> PlatformSummaryResult:
    """返回平台订单数、商品数与分币种营收，供管理后台使用。"""

    return cast(PlatformSummaryResult, _platform_summary(_service(ctx)))


@mcp.tool(name="generate_analytics_insights")
async def tool_generate_analytics_insights(
    ctx: Context,
    seller: str,
    range: Optional[str] = None,
    focus: Optional[str] = None,
) -> GenerateAnalyticsInsightsResult:
    """计算卖家分析结果并交给 LLM 生成自然语言洞察。

    Args:
        ctx (Context): FastMCP 请求上下文。
        seller (str): 卖家标识。
        range (Optional[str]): 时间粒度。
        focus (Optional[str]): 希望重点关注的方向。

    Returns:
        Dict[str, Any]: 含原始分析数据与洞察文本的报告。
    """

    service_context = _service(ctx)
    computed = await _compute_seller_analytics(service_context, seller=seller, granularity=range)
    result = _generate_analytics_insights(
        service_context,
        analytics=computed["data"],
        focus=focus,
    )
    return cast(GenerateAnalyticsInsightsResult, result)


def main(argv: Optional[list[str]] = None) -> None:
    """命令行入口，支持选择传输方式与监听参数。

    Args:
        argv (Optional[list[str]]): 手动传入的参数列表，通常由命令行自动提供。
    """

    parser = argparse.ArgumentParser(
        description="Run the Seller Analytics MCP server."
    )
    parser.add_argument(
        "transport",
        nargs="?",
        default="stdio",
        choices=["stdio", "sse", "streamable-http"],
        help="Transport mechanism to expose (default: stdio).",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Optional host binding for HTTP-based transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Optional port binding for HTTP-based transports.",
    )
    args = parser.parse_args(argv)

    logger.info("Starting MCP server transport=%s host=%s port=%s streamable_http_path=%s",
                args.transport, args.host or mcp.settings.host, args.port if args.port is not None else mcp.settings.port, getattr(mcp.settings, 'streamable_http_path', '(default)'))

    if args.host:
        mcp.settings.host = args.host
    if args.port is not None:
        mcp.settings.port = args.port

    mcp.run(transport=args.transport)


if __name__ == "__main__":
    main()
