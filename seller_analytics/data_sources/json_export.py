"""读取文档库导出的 JSON 快照作为数据源。"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from .base import CartRecord, OrderRecord, ProductRecord, WishlistRecord
from .memory import InMemorySource

logger = logging.getLogger(__name__)


class JsonExportSource(InMemorySource):
    """
    从单个 JSON 文件加载四类集合。

    文件结构为 `{"orders": [...], "products": [...], "cart": [...], "wishlist": [...]}`，
    缺失的键视为空集合。
    """

    def __init__(self, path: Path | str) -> None:
        """
        功能说明:
            读取并解析导出文件。
        参数:
            path (Path | str): JSON 文件路径。
        """
        self._path = Path(path)
        payload = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(payload, Mapping):
            raise ValueError(f"{self._path} must contain a JSON object")
        super().__init__(**documents_to_records(payload), name=f"json_export:{self._path.name}")
        logger.info(
            "Loaded %d orders, %d products, %d cart entries, %d wishlist entries from %s",
            len(self._orders),
            len(self._products),
            len(self._cart_entries),
            len(self._wishlist_entries),
            self._path,
        )


def documents_to_records(payload: Mapping[str, Any]) -> dict:
    """
    功能说明:
        将文档字典集合转换为记录对象集合，作为 InMemorySource 的构造参数。
    参数:
        payload (Mapping[str, Any]): 含 orders/products/cart/wishlist 的字典。
    返回:
        dict: 键为 orders/products/cart_entries/wishlist_entries 的记录列表。
    """
    return {
        "orders": [OrderRecord.from_document(doc) for doc in payload.get("orders") or []],
        "products": [ProductRecord.from_document(doc) for doc in payload.get("products") or []],
        "cart_entries": [CartRecord.from_document(doc) for doc in payload.get("cart") or []],
        "wishlist_entries": [WishlistRecord.from_document(doc) for doc in payload.get("wishlist") or []],
    }
