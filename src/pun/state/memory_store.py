from __future__ import annotations

from dataclasses import dataclass

from ..errors import NotFound
from ..models import VersionRecord


@dataclass(slots=True)
class MemoryVersionStore:
    """
    纯内存版本存储：用于测试，以及 version_path=":memory:" 的试运行。
    进程退出即丢失，因此每次启动都会走一次初始化。
    """

    version: str | None = None

    def load(self) -> VersionRecord:
        if self.version is None:
            raise NotFound("no version record in memory")
        return VersionRecord(version=self.version)

    def save(self, version: str) -> None:
        self.version = version
