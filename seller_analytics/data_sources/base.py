"""定义卖家分析所需的订单、商品、购物车与心愿单记录及数据源抽象。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, List, Mapping, Optional, Union

from ..utils.dates import parse_timestamp


@dataclass(frozen=True)
class BuyerRef:
    """
    结构化的买家信息。

    属性:
        id (Optional[str]): 买家标识。
        email (Optional[str]): 买家邮箱，标识缺失时作为替代。
        country (Optional[str]): 买家所在国家代码。
    """

    id: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None


Buyer = Union[str, BuyerRef, Mapping[str, Any], None]


def buyer_identity(buyer: Buyer) -> tuple[Optional[str], Optional[str]]:
    """
    功能说明:
        将买家字段（纯标识或结构化对象）归一化为稳定标识与可选国家。
    参数:
        buyer (Buyer): 订单或购物车中的买家字段。
    返回:
        tuple[Optional[str], Optional[str]]: (标识, 国家)，缺失时为 `None`。
    """
    if buyer is None:
        return None, None
    if isinstance(buyer, BuyerRef):
        return buyer.id or buyer.email or None, buyer.country or None
    if isinstance(buyer, Mapping):
        identifier = buyer.get("id") or buyer.get("_id") or buyer.get("email")
        return (str(identifier) if identifier else None), buyer.get("country") or None
    text = str(buyer).strip()
    return text or None, None


def _nested(doc: Mapping[str, Any], *path: str) -> Any:
    current: Any = doc
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def _parse_buyer(value: Any) -> Buyer:
    if isinstance(value, Mapping):
        identifier = value.get("id") or value.get("_id")
        return BuyerRef(
            id=_optional_str(identifier),
            email=_optional_str(value.get("email")),
            country=_optional_str(value.get("country")),
        )
    return _optional_str(value)


@dataclass(frozen=True)
class OrderRecord:
    """
    一条不可变的历史订单。

    数值字段保留原始值（可能缺失或非数字），由聚合层统一容错转换。

    属性:
        product_ref (Optional[str]): 商品引用，可能是内部标识或外部标识。
        product_name (Optional[str]): 下单时的商品名称快照。
        product_image (Optional[str]): 下单时的商品图片快照。
        seller (Optional[str]): 卖家标识。
        buyer (Buyer): 买家标识或结构化买家。
        quantity (Any): 购买数量。
        variant_price (Any): 规格单价。
        subtotal (Any): 小计。
        total_amount (Any): 订单金额。
        price (Any): 通用价格字段。
        delivery_fee (Any): 运费。
        country (Optional[str]): 收货国家代码。
        created_at (Optional[datetime]): 下单时间。
        total (Any): 订单总额。
        status (Optional[str]): 订单状态。
        currency (Optional[str]): 币种。
        order_id (Optional[str]): 订单号。
    """

    product_ref: Optional[str]
    seller: Optional[str]
    buyer: Buyer = None
    quantity: Any = None
    variant_price: Any = None
    subtotal: Any = None
    total_amount: Any = None
    price: Any = None
    delivery_fee: Any = None
    country: Optional[str] = None
    created_at: Optional[datetime] = None
    product_name: Optional[str] = None
    product_image: Optional[str] = None
    total: Any = None
    status: Optional[str] = None
    currency: Optional[str] = None
    order_id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "OrderRecord":
        """
        功能说明:
            将文档库导出的订单字典转换为记录对象。
        参数:
            doc (Mapping[str, Any]): 原始订单文档。
        返回:
            OrderRecord: 解析后的订单记录。
        """
        return cls(
            product_ref=_optional_str(doc.get("productId")),
            seller=_optional_str(doc.get("seller")),
            buyer=_parse_buyer(doc.get("buyer")),
            quantity=doc.get("quantity"),
            variant_price=_nested(doc, "variant", "price"),
            subtotal=doc.get("subtotal"),
            total_amount=doc.get("totalAmount"),
            price=doc.get("price"),
            delivery_fee=_nested(doc, "delivery", "fee"),
            country=_optional_str(_nested(doc, "delivery", "country") or doc.get("country")),
            created_at=parse_timestamp(doc.get("createdAt")),
            product_name=_optional_str(doc.get("productName")),
            product_image=_optional_str(doc.get("productImage")),
            total=doc.get("total"),
            status=_optional_str(doc.get("status")),
            currency=_optional_str(doc.get("currency")),
            order_id=_optional_str(doc.get("orderId") or doc.get("id")),
        )


@dataclass(frozen=True)
class ProductRecord:
    """
    商品目录中的一条商品。

    属性:
        store_id (str): 存储层分配的内部标识，始终存在。
        external_id (Optional[str]): 对外展示、人工分配的标识。
        seller (Optional[str]): 卖家标识。
        name (Optional[str]): 商品名称。
        price (Any): 标价。
        image (Optional[str]): 主图引用。
        cost (Any): 配送/处理成本。
        views (Any): 浏览计数。
    """

    store_id: str
    seller: Optional[str]
    external_id: Optional[str] = None
    name: Optional[str] = None
    price: Any = None
    image: Optional[str] = None
    cost: Any = None
    views: Any = None

    @property
    def identifiers(self) -> tuple[str, ...]:
        if self.external_id and self.external_id != self.store_id:
            return (self.store_id, self.external_id)
        return (self.store_id,)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ProductRecord":
        """
        功能说明:
            将商品文档转换为记录对象，`_id` 作为内部标识，`id` 作为外部标识。
        参数:
            doc (Mapping[str, Any]): 原始商品文档。
        返回:
            ProductRecord: 解析后的商品记录。
        """
        internal = _optional_str(doc.get("_id"))
        external = _optional_str(doc.get("id"))
        if internal is None:
            if external is None:
                raise ValueError("Product document has neither '_id' nor 'id'")
            internal, external = external, None
        images = doc.get("images")
        image = doc.get("image") or (images[0] if isinstance(images, list) and images else None)
        cost = doc.get("cost")
        return cls(
            store_id=internal,
            external_id=external,
            seller=_optional_str(doc.get("seller")),
            name=_optional_str(doc.get("name")),
            price=doc.get("price"),
            image=_optional_str(image),
            cost=cost if cost is not None else doc.get("deliveryFee"),
            views=doc.get("views"),
        )


@dataclass(frozen=True)
class CartRecord:
    """
    买家购物车中的一条商品。

    属性:
        buyer (Optional[str]): 买家标识。
        product_ref (Optional[str]): 商品引用（任一标识形式）。
        seller (Optional[str]): 卖家标签，可能过期或缺失。
        name (Optional[str]): 商品名称快照。
        price (Any): 价格快照。
        variant_price (Any): 规格价格快照。
        image (Optional[str]): 图片快照。
        quantity (Any): 数量，缺省为 1。
    """

    buyer: Optional[str]
    product_ref: Optional[str]
    seller: Optional[str] = None
    name: Optional[str] = None
    price: Any = None
    variant_price: Any = None
    image: Optional[str] = None
    quantity: Any = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "CartRecord":
        return cls(
            buyer=_optional_str(doc.get("buyer")),
            product_ref=_optional_str(doc.get("productId") or doc.get("id")),
            seller=_optional_str(doc.get("seller")),
            name=_optional_str(doc.get("name")),
            price=doc.get("price"),
            variant_price=_nested(doc, "variant", "price"),
            image=_optional_str(doc.get("image")),
            quantity=doc.get("quantity"),
        )


@dataclass(frozen=True)
class WishlistRecord:
    """心愿单条目，不带卖家字段。"""

    buyer: Optional[str]
    product_ref: Optional[str]
    quantity: Any = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "WishlistRecord":
        return cls(
            buyer=_optional_str(doc.get("buyer")),
            product_ref=_optional_str(doc.get("productId") or doc.get("id")),
            quantity=doc.get("quantity"),
        )


class SellerDataSource(ABC):
    """
    抽象基类，描述如何获取卖家分析所需的四类集合。

    所有方法均为只读且互不依赖，管道可以并发调用。
    """

    name: str

    @abstractmethod
    def fetch_orders(
        self,
        seller: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        tz: tzinfo = timezone.utc,
    ) -> List[OrderRecord]:
        """
        功能说明:
            获取卖家在时间窗口内（闭区间）的订单；窗口为空时返回全部。
        参数:
            seller (str): 卖家标识。
            start (Optional[datetime]): 起始时间。
            end (Optional[datetime]): 结束时间。
            tz (tzinfo): 统计时区，不带时区的订单时间按此解释。
        返回:
            List[OrderRecord]: 按下单时间升序的订单列表。
        """

    @abstractmethod
    def fetch_all_orders(self) -> List[OrderRecord]:
        """获取平台全部订单，用于买家与平台维度的汇总。"""

    @abstractmethod
    def fetch_products(self, seller: Optional[str] = None) -> List[ProductRecord]:
        """
        功能说明:
            获取商品目录。
        参数:
            seller (Optional[str]): 卖家标识；为空时返回全部商品。
        返回:
            List[ProductRecord]: 商品记录列表。
        """

    @abstractmethod
    def fetch_cart_entries(self) -> List[CartRecord]:
        """获取全部购物车条目（不按卖家过滤）。"""

    @abstractmethod
    def fetch_wishlist_entries(self) -> List[WishlistRecord]:
        """获取全部心愿单条目（不按卖家过滤）。"""


def in_window(
    moment: Optional[datetime],
    start: Optional[datetime],
    end: Optional[datetime],
    tz: tzinfo = timezone.utc,
) -> bool:
    """
    功能说明:
        判断订单时间是否落在闭区间窗口内；不带时区的时间一律视为统计时区。
    参数:
        moment (Optional[datetime]): 订单时间，缺失时视为不在窗口内（窗口为空除外）。
        start (Optional[datetime]): 起始时间。
        end (Optional[datetime]): 结束时间。
        tz (tzinfo): 统计时区，与分桶使用的时区一致。
    返回:
        bool: 是否在窗口内。
    """
    if start is None and end is None:
        return True
    if moment is None:
        return False
    moment = as_aware(moment, tz)
    if start is not None and moment < as_aware(start, tz):
        return False
    if end is not None and moment > as_aware(end, tz):
        return False
    return True


def as_aware(value: datetime, tz: tzinfo) -> datetime:
    """为不带时区的时间附加统计时区，带时区的时间原样返回。"""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value
