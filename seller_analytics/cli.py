"""卖家分析的命令行入口，串联数据源、分析管道与报告输出。"""

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import GRANULARITIES, AnalyticsConfig, AppConfig, DataSourceConfig
from .pipeline.pipeline import AnalyticsPipeline
from .reporting.formatter import format_text_report, result_to_dict
from .services import create_data_source
from .utils.dates import parse_boundary


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    功能说明:
        构建并解析命令行参数，返回解析后的命名空间。
    参数:
        argv (Optional[List[str]]): 手动传入的参数列表，为空时读取 `sys.argv`。
    返回:
        argparse.Namespace: 包含用户指定的运行选项。
    """
    parser = argparse.ArgumentParser(description="Seller analytics report runner")
    parser.add_argument("--seller", required=True, help="Seller identifier to analyse.")
    parser.add_argument("--range", choices=GRANULARITIES, help="Time bucket granularity.")
    parser.add_argument("--start", type=str, help="Optional start, ISO date/time or epoch millis.")
    parser.add_argument("--end", type=str, help="Optional end, ISO date/time or epoch millis.")
    parser.add_argument("--timezone", default=None, help="IANA timezone for buckets, e.g. Africa/Lagos.")
    parser.add_argument("--source", choices=["mock", "json"], default="mock", help="Where to read records from.")
    parser.add_argument("--data-path", type=Path, help="JSON export path when --source json.")
    parser.add_argument("--seed", type=int, default=2024, help="Seed for the mock marketplace.")
    parser.add_argument("--top-n", type=int, default=10, help="How many top products to print.")
    parser.add_argument("--output-json", type=Path, help="Path to save the JSON payload.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level, e.g. INFO or DEBUG.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    """
    功能说明:
        以环境变量为基础，用命令行参数覆盖默认粒度、时区与数据源。
    参数:
        args (argparse.Namespace): 命令行解析得到的参数集合。
    返回:
        AppConfig: 用于后续管道运行的配置对象。
    """
    base = AppConfig.from_env()
    analytics = AnalyticsConfig(
        default_range=args.range or base.analytics.default_range,
        timezone=args.timezone or base.analytics.timezone,
    )
    data_source = DataSourceConfig(
        kind=args.source,
        path=str(args.data_path) if args.data_path else None,
        seed=args.seed,
    )
    return AppConfig(
        analytics=analytics,
        data_source=data_source,
        openai_api_key=base.openai_api_key,
        openai_model=base.openai_model,
        openai_temperature=base.openai_temperature,
    )


def run_cli(argv: Optional[List[str]] = None) -> None:
    """
    功能说明:
        命令行主入口：读取参数、执行管道、输出文本报告并按需写出 JSON。
    参数:
        argv (Optional[List[str]]): 手动传入的参数列表。
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = build_config(args)
    pipeline = AnalyticsPipeline(config=config, data_source=create_data_source(config))
    result = pipeline.run(
        seller=args.seller,
        granularity=args.range,
        start=parse_boundary(args.start, config.analytics.tzinfo),
        end=parse_boundary(args.end, config.analytics.tzinfo),
    )

    print(format_text_report(result, top_n=args.top_n))

    if args.output_json:
        # 写入 UTF-8 以保留中文商品名。
        payload = {"success": True, "data": result_to_dict(result)}
        args.output_json.parent.mkdir(parents=True, exist_ok=True)
        args.output_json.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"JSON report written to: {args.output_json}")


if __name__ == "__main__":  # pragma: no cover
    run_cli()
