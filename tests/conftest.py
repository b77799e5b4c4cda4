import os
import sys
from dataclasses import dataclass, field


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import pytest  # noqa: E402

from pun.errors import DeliveryFailed  # noqa: E402
from pun.models import ChangelogEntry, NotificationPayload  # noqa: E402


@dataclass
class FakeSource:
    """
    纯内存 Source：按顺序返回预设的 changelog 列表；元素为异常时直接抛出。
    最后一个元素会被重复使用，便于模拟“远端一直不变”。
    """

    responses: list
    calls: int = 0

    def key(self) -> str:
        return "fake"

    def fetch_latest_entries(self) -> tuple[ChangelogEntry, ...]:
        idx = min(self.calls, len(self.responses) - 1)
        self.calls += 1
        item = self.responses[idx]
        if isinstance(item, Exception):
            raise item
        return tuple(item)


@dataclass
class RecordingNotifier:
    """
    纯内存 Notifier：记录每次投递；failing 中的 endpoint 会抛 DeliveryFailed。
    """

    failing: set[str] = field(default_factory=set)
    attempts: list[tuple[str, NotificationPayload]] = field(default_factory=list)

    def channel(self) -> str:
        return "fake"

    def deliver(self, endpoint: str, payload: NotificationPayload) -> None:
        self.attempts.append((endpoint, payload))
        if endpoint in self.failing:
            raise DeliveryFailed(f"boom: {endpoint}", endpoint=endpoint, status=500)


def make_entry(version: str, *, change_mod: tuple[str, ...] = (), size: str = "1.2 GB") -> ChangelogEntry:
    return ChangelogEntry(
        version=version,
        release_at="2026-10-01 18:00:00",
        size=size,
        change_mod=change_mod,
    )


@pytest.fixture
def entry_factory():
    return make_entry
