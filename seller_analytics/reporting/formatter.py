"""提供卖家分析结果的 JSON 结构化与文本格式化工具。"""

from __future__ import annotations

from typing import Any, Dict, List

from ..metrics.bucketing import ProductAccumulator
from ..metrics.calculations import AnalyticsResult
from ..metrics.summaries import OrderSummary, PlatformSummary, SalesSummary


def _product_to_dict(product: ProductAccumulator) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "cost": product.cost,
        "sold": product.sold,
        "inCart": product.in_cart,
        "inWishlist": product.in_wishlist,
        "deliveryFees": product.delivery_fees,
        "image": product.image,
    }


def result_to_dict(result: AnalyticsResult) -> Dict[str, Any]:
    """
    功能说明:
        将 AnalyticsResult 转换为返回给 HTTP/MCP 边界的 JSON 字典（驼峰键名）。
    参数:
        result (AnalyticsResult): 卖家分析结果。
    返回:
        Dict[str, Any]: 可直接 `json.dumps` 的结构。
    """
    return {
        "storeName": result.store_name,
        "products": [_product_to_dict(product) for product in result.products],
        "earnings": result.earnings,
        "totalOrders": result.total_orders,
        "totalProducts": result.total_products,
        "avgOrderValue": result.avg_order_value,
        "months": list(result.months),
        "monthlySales": list(result.monthly_sales),
        "bestTimeToSell": {
            "labels": list(result.best_time_to_sell.labels),
            "sales": list(result.best_time_to_sell.sales),
        },
        "salesByRegion": [
            {"country": region.country, "amount": region.amount}
            for region in result.sales_by_region
        ],
        "profitMargins": [
            {
                "name": margin.name,
                "price": margin.price,
                "cost": margin.cost,
                "sold": margin.sold,
                "totalRevenue": margin.total_revenue,
                "profitPerUnit": margin.profit_per_unit,
                "totalProfit": margin.total_profit,
            }
            for margin in result.profit_margins
        ],
        "funnel": {
            "views": result.funnel.views,
            "addedToCart": result.funnel.added_to_cart,
            "checkout": result.funnel.checkout,
            "completed": result.funnel.completed,
        },
        "customers": {
            "total": result.customers.total,
            "repeat": result.customers.repeat,
            "new": result.customers.new,
        },
        "dateRange": {
            "start": result.date_range.start.isoformat(),
            "end": result.date_range.end.isoformat(),
        },
        "range": result.range,
    }


def sales_summary_to_dict(summary: SalesSummary) -> Dict[str, Any]:
    top_product = summary.top_product
    return {
        "seller": summary.seller,
        "totalOrders": summary.total_orders,
        "topProduct": (
            {
                "id": summary.top_product_id,
                "name": top_product.name if top_product else None,
                "price": top_product.price if top_product else None,
                "image": top_product.image if top_product else None,
                "orders": summary.top_product_orders,
            }
            if summary.top_product_id
            else None
        ),
        "wishlistCount": summary.wishlist_count,
        "cartCount": summary.cart_count,
    }


def order_summary_to_dict(summary: OrderSummary) -> Dict[str, Any]:
    return {
        "buyer": summary.buyer,
        "totalOrders": summary.total_orders,
        "totalSpent": f"{summary.total_spent:.2f}",
        "statusBreakdown": dict(summary.status_breakdown),
    }


def platform_summary_to_dict(summary: PlatformSummary) -> Dict[str, Any]:
    return {
        "totalOrders": summary.total_orders,
        "totalProducts": summary.total_products,
        "revenueByCurrency": dict(summary.revenue_by_currency),
    }


def _money(value: float) -> str:
    return "$" + format(value, ",.2f")


def _format_product_line(idx: int, product: ProductAccumulator) -> str:
    """
    功能说明:
        将单个商品累计格式化为人类可读的文本。
    参数:
        idx (int): 商品排名序号。
        product (ProductAccumulator): 商品累计。
    返回:
        str: 格式化后的文本行。
    """
    return (
        f"{idx}. {product.name} ({product.id}) - Revenue {_money(product.revenue)}, "
        f"Sold {product.sold:g}, In cart {product.in_cart:g}, Wishlisted {product.in_wishlist:g}"
    )


def format_text_report(result: AnalyticsResult, *, top_n: int = 10) -> str:
    """
    功能说明:
        生成适合在控制台展示的卖家分析文本。
    参数:
        result (AnalyticsResult): 卖家分析结果。
        top_n (int): 列出的商品数量上限。
    返回:
        str: 多行字符串，包含窗口、总览、时间序列、地区与商品列表。
    """
    lines: List[str] = []
    lines.append(f"Store: {result.store_name} | Range: {result.range}")
    lines.append(
        f"Window: {result.date_range.start.isoformat()} to {result.date_range.end.isoformat()}"
    )
    lines.append(
        f"Totals: Earnings {_money(result.earnings)}, Orders {result.total_orders}, "
        f"Products {result.total_products}, AOV {_money(result.avg_order_value)}"
    )
    lines.append(
        f"Customers: {result.customers.total} total, {result.customers.repeat} repeat, "
        f"{result.customers.new} new"
    )
    funnel = result.funnel
    lines.append(
        f"Funnel: views {funnel.views} -> cart {funnel.added_to_cart} -> "
        f"checkout {funnel.checkout} -> completed {funnel.completed}"
    )
    if not result.products:
        lines.append("No sales in this window.")
        return "\n".join(lines)

    lines.append("Sales over time:")
    for key, amount in zip(result.months, result.monthly_sales):
        lines.append(f"  {key}: {_money(amount)}")

    peak_hour = max(range(len(result.best_time_to_sell.sales)), key=result.best_time_to_sell.sales.__getitem__)
    lines.append(f"Best time to sell: {result.best_time_to_sell.labels[peak_hour]}")

    lines.append("Sales by region:")
    for region in result.sales_by_region:
        lines.append(f"  {region.country}: {_money(region.amount)}")

    lines.append("Top products (by revenue):")
    for idx, product in enumerate(result.products[:top_n], start=1):
        lines.append(_format_product_line(idx, product))

    return "\n".join(lines)
