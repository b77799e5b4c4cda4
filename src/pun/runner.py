from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from .config import AppConfig
from .errors import DeliveryFailed, EmptyChangelog, NotFound, NotifierError
from .http_utils import HttpClient, redact_url
from .models import ChangelogEntry, utc_now
from .notify.base import Notifier
from .notify.formatter import build_payload
from .notify.webhook import WebhookNotifier
from .sources.base import ChangelogSource
from .sources.panthor import PanthorChangelogSource
from .state.file_store import FileVersionStore
from .state.memory_store import MemoryVersionStore
from .state.store import VersionStore


logger = logging.getLogger(__name__)


class CycleState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    COMPARING = "comparing"
    UNCHANGED = "unchanged"
    UPDATING = "updating"


class CycleOutcome(StrEnum):
    SEEDED = "seeded"
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class DeliveryReport:
    endpoint: str
    ok: bool
    status: int | None = None
    error: str | None = None


@dataclass(slots=True)
class CycleReport:
    started_at: datetime
    finished_at: datetime
    duration_ms: int
    outcome: CycleOutcome
    current_version: str | None = None
    previous_version: str | None = None
    deliveries: tuple[DeliveryReport, ...] = ()
    error: str | None = None

    @property
    def notify_attempts(self) -> int:
        return len(self.deliveries)

    @property
    def notify_successes(self) -> int:
        return sum(1 for d in self.deliveries if d.ok)

    @property
    def notify_failures(self) -> int:
        return sum(1 for d in self.deliveries if not d.ok)


@dataclass(slots=True)
class CheckCycle:
    """
    核心执行器：一次检查周期内的完整闭环：
    Source(fetch) -> State(compare) -> State(persist) -> Notify(fan-out)

    关键约束：
    - 版本号先落盘，再发通知：进程在通知途中崩溃也不会重复播报同一版本
    - 单个 webhook 失败只记录，不影响其他 webhook，也不回滚版本
    - 拉取/存储失败只结束本周期，下一次调度自然重试
    """

    source: ChangelogSource
    store: VersionStore
    notifier: Notifier
    endpoints: tuple[str, ...]
    state: CycleState = CycleState.IDLE
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def run_once(self, *, refresh: bool = False) -> CycleReport:
        """
        执行一个检查周期（单次）。

        refresh=True 时无条件把当前最新版本写入存储且不发通知（启动时的初始化）；
        存储为空时也会自动走初始化。
        """
        started_at = utc_now()
        start_t = time.monotonic()

        if not self._lock.acquire(blocking=False):
            logger.warning("cycle skipped: previous cycle still running")
            return self._report(started_at, start_t, CycleOutcome.SKIPPED)

        try:
            return self._run(started_at, start_t, refresh=refresh)
        finally:
            self._transition(CycleState.IDLE)
            self._lock.release()

    def _run(self, started_at: datetime, start_t: float, *, refresh: bool) -> CycleReport:
        self._transition(CycleState.FETCHING)
        try:
            entries = self.source.fetch_latest_entries()
            if not entries:
                raise EmptyChangelog("no changelogs found")
        except NotifierError as e:
            logger.exception("changelog fetch failed: source_key=%s", self.source.key())
            return self._report(started_at, start_t, CycleOutcome.FAILED, error=_describe(e))

        current = entries[0]
        self._transition(CycleState.COMPARING)

        previous: str | None = None
        seed = refresh
        if not refresh:
            try:
                previous = self.store.load().version
            except NotFound:
                logger.info("no version record yet; seeding with current version")
                seed = True
            except NotifierError as e:
                logger.exception("version record unreadable; cycle aborted")
                return self._report(started_at, start_t, CycleOutcome.FAILED, current=current, error=_describe(e))

        if seed:
            try:
                self.store.save(current.version)
            except NotifierError as e:
                logger.exception("failed to save version: version=%s", current.version)
                return self._report(started_at, start_t, CycleOutcome.FAILED, current=current, error=_describe(e))
            logger.info("version seeded: version=%s", current.version)
            return self._report(started_at, start_t, CycleOutcome.SEEDED, current=current)

        if current.version == previous:
            self._transition(CycleState.UNCHANGED)
            logger.info("version unchanged: version=%s", current.version)
            return self._report(started_at, start_t, CycleOutcome.UNCHANGED, current=current, previous=previous)

        self._transition(CycleState.UPDATING)
        logger.info("new version detected: version=%s previous=%s", current.version, previous)
        try:
            self.store.save(current.version)
        except NotifierError as e:
            logger.exception("failed to save version: version=%s", current.version)
            return self._report(
                started_at, start_t, CycleOutcome.FAILED, current=current, previous=previous, error=_describe(e)
            )

        deliveries = self._fan_out(current)
        return self._report(
            started_at,
            start_t,
            CycleOutcome.UPDATED,
            current=current,
            previous=previous,
            deliveries=deliveries,
        )

    def _fan_out(self, entry: ChangelogEntry) -> tuple[DeliveryReport, ...]:
        if not self.endpoints:
            logger.warning("no webhooks configured; version %s recorded but not announced", entry.version)

        reports: list[DeliveryReport] = []
        for endpoint in self.endpoints:
            payload = build_payload(entry)
            try:
                self.notifier.deliver(endpoint, payload)
            except Exception as e:  # noqa: BLE001
                status = e.status if isinstance(e, DeliveryFailed) else None
                logger.exception(
                    "notify failed: channel=%s endpoint=%s version=%s status=%s",
                    self.notifier.channel(),
                    redact_url(endpoint),
                    entry.version,
                    status,
                )
                reports.append(DeliveryReport(endpoint=endpoint, ok=False, status=status, error=_describe(e)))
                continue
            logger.info("notified: endpoint=%s version=%s", redact_url(endpoint), entry.version)
            reports.append(DeliveryReport(endpoint=endpoint, ok=True, status=200))
        return tuple(reports)

    def _transition(self, new_state: CycleState) -> None:
        if new_state != self.state:
            logger.debug("cycle state: %s -> %s", self.state, new_state)
        self.state = new_state

    @staticmethod
    def _report(
        started_at: datetime,
        start_t: float,
        outcome: CycleOutcome,
        *,
        current: ChangelogEntry | None = None,
        previous: str | None = None,
        deliveries: tuple[DeliveryReport, ...] = (),
        error: str | None = None,
    ) -> CycleReport:
        return CycleReport(
            started_at=started_at,
            finished_at=utc_now(),
            duration_ms=int((time.monotonic() - start_t) * 1000),
            outcome=outcome,
            current_version=current.version if current else None,
            previous_version=previous,
            deliveries=deliveries,
            error=error,
        )


def _describe(e: Exception) -> str:
    return f"{type(e).__name__}: {e}"


def build_cycle(config: AppConfig) -> CheckCycle:
    """
    根据配置装配 CheckCycle。

    设计取舍（v0）：
    - 统一在这里做“配置 -> 实例”的装配，CheckCycle 内只关注流程编排
    - webhook 可以来自环境变量，避免带 token 的 URL 落盘
    """
    http = HttpClient(timeout_seconds=config.timeout_seconds)
    store: VersionStore
    if config.version_path == ":memory:":
        store = MemoryVersionStore()
    else:
        store = FileVersionStore(config.version_path)

    return CheckCycle(
        source=PanthorChangelogSource(http=http, url=config.changelog_url),
        store=store,
        notifier=WebhookNotifier(http=http),
        endpoints=config.endpoints(),
    )
