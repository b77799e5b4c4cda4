from __future__ import annotations

import logging
import re
from datetime import tzinfo

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .errors import NotFound, NotifierError
from .runner import CheckCycle, CycleReport


logger = logging.getLogger(__name__)

JOB_ID = "check_cycle"

_DESCRIPTORS = {
    "@yearly": "0 0 0 1 1 *",
    "@annually": "0 0 0 1 1 *",
    "@monthly": "0 0 0 1 * *",
    "@weekly": "0 0 0 * * 0",
    "@daily": "0 0 0 * * *",
    "@midnight": "0 0 0 * * *",
    "@hourly": "0 0 * * * *",
}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")

_DOW_PART = re.compile(r"^(\*|\d+)(?:-(\d+))?(?:/(\d+))?$")


def parse_duration(value: str) -> float:
    """
    解析 Go 风格的时长串，返回秒数。

    兼容：
    - 90s / 5m / 1h30m / 1.5h / 500ms
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    pos = 0
    total = 0.0
    for m in _DURATION_PART.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def _convert_day_of_week(expr: str) -> str:
    # crontab 中 0/7 为周日，APScheduler 的数字与区间都从周一开始；
    # 数字、区间、步长先展开成英文缩写列表，原本就是缩写的部分保持不变。
    if expr == "*":
        return expr
    names: list[str] = []
    for part in expr.split(","):
        m = _DOW_PART.match(part)
        if m is None:
            names.append(part)
            continue
        start_text, end_text, step_text = m.groups()
        if start_text == "*":
            if end_text is not None:
                raise ValueError(f"invalid day of week: {part!r}")
            start, end = 0, 6
        else:
            start = int(start_text)
            if end_text is not None:
                end = int(end_text)
            else:
                end = 6 if step_text is not None else start
        step = int(step_text) if step_text is not None else 1
        if start > 7 or end > 7:
            raise ValueError(f"day of week out of range: {part!r}")
        if start > end:
            raise ValueError(f"day of week range must not wrap: {part!r}")
        if step < 1:
            raise ValueError(f"day of week step must be positive: {part!r}")
        for n in range(start, end + 1, step):
            name = _WEEKDAY_NAMES[n]
            if name not in names:
                names.append(name)
    return ",".join(names)


def _cron_trigger(fields: list[str], tz: tzinfo | None) -> CronTrigger:
    second, minute, hour, day, month, day_of_week = (f.replace("?", "*") for f in fields)
    return CronTrigger(
        second=second,
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=_convert_day_of_week(day_of_week),
        timezone=tz,
    )


def parse_schedule(expr: str, *, timezone: tzinfo | None = None) -> BaseTrigger:
    """
    把配置中的调度表达式转换为 APScheduler trigger。

    支持：
    - 6 段（秒 分 时 日 月 周）：0 */5 * * * *
    - 5 段（秒 分 时 日 月，周省略即 *）：0 */5 * * *，首段同样是秒
    - 星期字段 0/7 为周日，可用区间与步长：1-5、0-6、*/2
    - 描述符：@yearly/@annually/@monthly/@weekly/@daily/@midnight/@hourly
    - @every <duration>：@every 5m、@every 1h30m（不足 1 秒按 1 秒）
    """
    text = (expr or "").strip()
    if not text:
        raise ValueError("empty schedule expression")

    if text.startswith("@every"):
        seconds = int(parse_duration(text[len("@every") :]))
        return IntervalTrigger(seconds=max(1, seconds), timezone=timezone)

    if text.startswith("@"):
        spec = _DESCRIPTORS.get(text.lower())
        if spec is None:
            raise ValueError(f"unrecognized schedule descriptor: {text!r}")
        return _cron_trigger(spec.split(), timezone)

    fields = text.split()
    if len(fields) == 5:
        return _cron_trigger([*fields, "*"], timezone)
    if len(fields) == 6:
        return _cron_trigger(fields, timezone)
    raise ValueError(f"expected 5 or 6 cron fields, got {len(fields)}: {text!r}")


class Scheduler:
    """
    调度器：启动时按需执行一次初始化，之后按调度表达式反复调用 CheckCycle.run_once。

    说明：
    - job 设置 max_instances=1 + coalesce，周期不会重叠
    - 任何一次周期失败（包括意外异常）都只记录日志，进程继续运行
    """

    def __init__(
        self,
        cycle: CheckCycle,
        *,
        schedule: str,
        run_on_startup: bool,
        scheduler: BaseScheduler | None = None,
    ) -> None:
        self.cycle = cycle
        self.schedule = schedule
        self.run_on_startup = run_on_startup
        self.trigger = parse_schedule(schedule)
        self._scheduler = scheduler if scheduler is not None else BlockingScheduler()

    def startup(self) -> CycleReport | None:
        """
        启动阶段：
        - run_on_startup 为真：无条件刷新本地版本（不发通知）
        - 否则只有在尚无版本记录时才初始化
        """
        if self.run_on_startup:
            return self.tick(refresh=True)

        try:
            self.cycle.store.load()
        except NotFound:
            return self.tick()
        except NotifierError:
            logger.warning("version record unreadable at startup; scheduled cycles will report it")
        return None

    def tick(self, *, refresh: bool = False) -> CycleReport | None:
        try:
            report = self.cycle.run_once(refresh=refresh)
        except Exception:  # noqa: BLE001
            logger.exception("cycle crashed")
            return None

        logger.info(
            "cycle summary: outcome=%s version=%s previous=%s duration_ms=%d notify_attempts=%d notify_failures=%d",
            report.outcome,
            report.current_version,
            report.previous_version,
            report.duration_ms,
            report.notify_attempts,
            report.notify_failures,
        )
        return report

    def run_forever(self) -> None:
        self.startup()
        self._scheduler.add_job(
            self.tick,
            self.trigger,
            id=JOB_ID,
            name="Check changelog for a new version",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("update notifier started: schedule=%s", self.schedule)
        try:
            self._scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("update notifier stopping")
        finally:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
