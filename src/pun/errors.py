from __future__ import annotations


class NotifierError(Exception):
    """所有可预期错误的基类；CheckCycle 只捕获这一族异常并记录后返回。"""


class SourceError(NotifierError):
    pass


class SourceUnavailable(SourceError):
    """远端不可达，或返回了非 200 状态码。"""


class MalformedResponse(SourceError):
    """响应体无法解码为预期结构。"""


class EmptyChangelog(SourceError):
    """接口返回了空的 data 列表。"""


class StoreError(NotifierError):
    pass


class NotFound(StoreError):
    """尚无版本记录（首次运行），调用方据此执行初始化。"""


class CorruptRecord(StoreError):
    pass


class WriteFailed(StoreError):
    pass


class DeliveryFailed(NotifierError):
    """
    单个 webhook 投递失败（网络错误或非 200 状态码）。

    只影响当前 endpoint，不会中断对其余 endpoint 的投递。
    """

    def __init__(self, message: str, *, endpoint: str, status: int | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status
