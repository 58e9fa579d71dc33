"""卖家分析服务的配置模型，支持环境变量加载。"""

import os
from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

GRANULARITIES = ("hour", "day", "week", "month", "year")
DATA_SOURCE_KINDS = ("mock", "json")


@dataclass
class AnalyticsConfig:
    """
    定义聚合计算层面的默认参数。

    属性:
        default_range (str): 未指定时使用的时间粒度。
        timezone (str): 计算分桶键与小时分布时使用的时区名称。
    """

    default_range: str = "day"
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if self.default_range not in GRANULARITIES:
            raise ValueError(f"Unsupported range: {self.default_range!r}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls, prefix: str = "ANALYTICS_") -> "AnalyticsConfig":
        """
        功能说明:
            从环境变量加载聚合行为配置。
        参数:
            prefix (str): 环境变量前缀。
        返回:
            AnalyticsConfig: 包含默认粒度及时区的实例。
        """
        default_range = os.getenv(f"{prefix}DEFAULT_RANGE", "day").lower()
        timezone = os.getenv(f"{prefix}TIMEZONE", "UTC")
        return cls(default_range=default_range, timezone=timezone)


@dataclass
class DataSourceConfig:
    """
    描述原始订单、商品、购物车与心愿单数据的来源。

    属性:
        kind (str): `mock` 使用可复现的模拟数据，`json` 读取导出的文档集合。
        path (Optional[str]): `json` 模式下的导出文件路径。
        seed (int): 模拟数据的伪随机种子。
    """

    kind: str = "mock"
    path: Optional[str] = None
    seed: int = 2024

    def __post_init__(self) -> None:
        if self.kind not in DATA_SOURCE_KINDS:
            raise ValueError(f"Unsupported data source kind: {self.kind!r}")
        if self.kind == "json" and not self.path:
            raise ValueError("DATA_PATH is required when DATA_SOURCE=json")

    @classmethod
    def from_env(cls, prefix: str = "DATA_") -> "DataSourceConfig":
        """
        功能说明:
            从环境变量读取数据源相关配置。
        参数:
            prefix (str): 变量名前缀。
        返回:
            DataSourceConfig: 数据源类型、路径与种子。
        """
        kind = os.getenv(f"{prefix}SOURCE", "mock").lower()
        path = os.getenv(f"{prefix}PATH") or None
        seed = int(os.getenv(f"{prefix}SEED", 2024))
        return cls(kind=kind, path=path, seed=seed)


@dataclass
class AppConfig:
    """
    顶层组合配置，聚合分析参数、数据源与 LLM 设置。

    属性:
        analytics (AnalyticsConfig): 聚合计算参数。
        data_source (DataSourceConfig): 数据源设置。
        openai_api_key (Optional[str]): OpenAI API Key。
        openai_model (str): 默认模型名称。
        openai_temperature (float): 生成温度。
    """

    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-5-mini"
    openai_temperature: float = 0.0

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        功能说明:
            统一从环境变量载入所有子配置。
        返回:
            AppConfig: 完整的应用配置实例。
        """
        return cls(
            analytics=AnalyticsConfig.from_env(),
            data_source=DataSourceConfig.from_env(),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-5-mini"),
            openai_temperature=float(os.getenv("OPENAI_TEMPERATURE", "0")),
        )
