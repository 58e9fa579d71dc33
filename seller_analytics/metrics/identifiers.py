"""商品标识对账：让内部标识与外部标识指向同一个逻辑商品。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from ..data_sources.base import ProductRecord
from .numbers import to_float


@dataclass
class CatalogIndex:
    """
    单个卖家商品目录的查找表，所有映射同时以两种标识为键。

    属性:
        images (Dict[str, Optional[str]]): 标识 -> 图片引用。
        costs (Dict[str, float]): 标识 -> 单位成本。
        seller_ids (Set[str]): 卖家全部商品标识（两种形式的并集）。
        canonical (Dict[str, str]): 任一标识 -> 规范键。
        products (Dict[str, ProductRecord]): 任一标识 -> 商品记录。
    """

    images: Dict[str, Optional[str]] = field(default_factory=dict)
    costs: Dict[str, float] = field(default_factory=dict)
    seller_ids: Set[str] = field(default_factory=set)
    canonical: Dict[str, str] = field(default_factory=dict)
    products: Dict[str, ProductRecord] = field(default_factory=dict)

    def resolve(self, ref: Optional[str]) -> Optional[str]:
        """返回引用对应的规范键；目录中不存在时原样返回。"""
        if ref is None:
            return None
        return self.canonical.get(ref, ref)

    def product(self, ref: Optional[str]) -> Optional[ProductRecord]:
        if ref is None:
            return None
        return self.products.get(ref)

    @property
    def catalog_products(self) -> list[ProductRecord]:
        """去重后的卖家商品列表，保持目录原有顺序。"""
        seen: Dict[str, ProductRecord] = {}
        for record in self.products.values():
            seen.setdefault(record.store_id, record)
        return list(seen.values())


def reconcile_catalog(products: Iterable[ProductRecord], seller: str) -> CatalogIndex:
    """
    功能说明:
        为卖家的商品构建图片、成本与规范键映射，内部标识与外部标识同时入表。
        规范键优先使用外部标识，其次为内部标识。
    参数:
        products (Iterable[ProductRecord]): 全量或已按卖家过滤的商品目录。
        seller (str): 目标卖家。
    返回:
        CatalogIndex: 查找表；空目录得到空映射。
    """
    index = CatalogIndex()
    for product in products:
        if product.seller != seller:
            continue
        key = product.external_id or product.store_id
        cost = to_float(product.cost)
        for identifier in product.identifiers:
            index.images[identifier] = product.image
            index.costs[identifier] = cost
            index.seller_ids.add(identifier)
            index.canonical[identifier] = key
            index.products[identifier] = product
    return index
