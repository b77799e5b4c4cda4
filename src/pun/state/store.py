from __future__ import annotations

from typing import Protocol

from ..models import VersionRecord


class VersionStore(Protocol):
    """
    版本记录存储接口（单值）：
    - load：无记录抛 NotFound，记录损坏抛 CorruptRecord
    - save：整体覆盖写，返回前必须已落盘；失败抛 WriteFailed
    """

    def load(self) -> VersionRecord: ...

    def save(self, version: str) -> None: ...
