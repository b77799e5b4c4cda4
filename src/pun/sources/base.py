from __future__ import annotations

from typing import Protocol

from ..models import ChangelogEntry


class ChangelogSource(Protocol):
    """
    数据源接口：拉取当前已发布的 changelog 列表（最新的在最前）。

    v0 约定：
    - 远端不可达 / 非 200 抛 SourceUnavailable
    - 响应结构不符抛 MalformedResponse
    - 不对结果重新排序，接口返回的顺序即为准
    """

    def key(self) -> str: ...

    def fetch_latest_entries(self) -> tuple[ChangelogEntry, ...]: ...
