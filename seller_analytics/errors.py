"""卖家分析引擎对外暴露的异常类型。"""


class InvalidArgumentError(ValueError):
    """调用方违反接口约定（缺少卖家、未知粒度等）时抛出，不应重试。"""
