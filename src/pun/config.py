from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

import yaml

from .http_utils import redact_url
from .sources.panthor import DEFAULT_CHANGELOG_URL

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE = "@every 5m"
DEFAULT_VERSION_PATH = "./version.yml"


def _require_dict(value: Any, *, where: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"Expected object at {where}, got {type(value)}")
    return value


def _get_bool(d: Mapping[str, Any], key: str, default: bool) -> bool:
    v = d.get(key, default)
    return bool(v)


def _get_float(d: Mapping[str, Any], key: str, default: float) -> float:
    v = d.get(key, default)
    if isinstance(v, bool):
        return default
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def _get_str(d: Mapping[str, Any], key: str, default: str | None = None) -> str | None:
    v = d.get(key, default)
    if v is None:
        return None
    return str(v)


def _get_str_list(d: Mapping[str, Any], key: str, default: list[str]) -> list[str]:
    v = d.get(key, default)
    if v is None:
        return list(default)
    if isinstance(v, list):
        return [str(x) for x in v]
    return list(default)


def _split_env_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True, slots=True)
class AppConfig:
    """
    应用总配置。

    schedule:
      - 调度表达式：首段为秒的 cron（6 段，或省略星期的 5 段）、@hourly 等描述符、@every 5m
    run_on_startup:
      - 启动时无条件执行一次初始化（只记录版本，不发通知）
    webhooks:
      - 配置文件中直接写出的 webhook 列表
    webhooks_env:
      - 额外 webhook 的环境变量名（逗号分隔），避免把带 token 的 URL 落盘
    version_path:
      - 版本记录文件路径；":memory:" 表示仅保存在内存中
    """

    schedule: str
    run_on_startup: bool
    webhooks: tuple[str, ...]
    webhooks_env: str | None
    changelog_url: str
    version_path: str
    timeout_seconds: float

    def resolve_env(self, env_name: str | None) -> str | None:
        if not env_name:
            return None
        return os.environ.get(env_name)

    def endpoints(self) -> tuple[str, ...]:
        """
        配置文件中的 webhook + 环境变量中的 webhook，保持顺序。

        同一 URL 重复出现时只保留第一次（每个地址每个版本只投递一次），
        被丢弃的重复项会打 warning 日志。
        """
        merged: list[str] = []
        for url in (*self.webhooks, *_split_env_list(self.resolve_env(self.webhooks_env))):
            if not url:
                continue
            if url in merged:
                logger.warning("duplicate webhook ignored: endpoint=%s", redact_url(url))
                continue
            merged.append(url)
        return tuple(merged)


def load_config(config_path: str) -> AppConfig:
    """
    使用 YAML 作为配置落地形式（JSON 是 YAML 的子集，也可以直接使用）。

    顶层结构（示意）：
    app:
      interval: "@every 5m"
      load_on_startup: true
    notification:
      webhooks: ["https://..."]
      webhooks_env: PUN_WEBHOOKS
    source:
      url: https://api.panthor.de/v1/changelog
    state:
      version_path: ./version.yml
    http:
      timeout_seconds: 20
    """
    with open(config_path, "rb") as f:
        raw = yaml.safe_load(f.read().decode("utf-8"))

    if raw is None:
        raw = {}
    root = _require_dict(raw, where="$")

    app = _require_dict(root.get("app") or {}, where="$.app")
    schedule = (_get_str(app, "interval", None) or "").strip() or DEFAULT_SCHEDULE

    notification = _require_dict(root.get("notification") or {}, where="$.notification")
    webhooks = tuple(w.strip() for w in _get_str_list(notification, "webhooks", []) if w.strip())

    source = _require_dict(root.get("source") or {}, where="$.source")
    state = _require_dict(root.get("state") or {}, where="$.state")
    http = _require_dict(root.get("http") or {}, where="$.http")

    return AppConfig(
        schedule=schedule,
        run_on_startup=_get_bool(app, "load_on_startup", False),
        webhooks=webhooks,
        webhooks_env=_get_str(notification, "webhooks_env", None),
        changelog_url=_get_str(source, "url", None) or DEFAULT_CHANGELOG_URL,
        version_path=_get_str(state, "version_path", None) or DEFAULT_VERSION_PATH,
        timeout_seconds=max(1.0, _get_float(http, "timeout_seconds", 20.0)),
    )
