from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Mapping

from .errors import MalformedResponse


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _str_field(raw: Mapping[str, Any], key: str) -> str:
    v = raw.get(key)
    if v is None:
        return ""
    return str(v)


def _int_field(raw: Mapping[str, Any], key: str) -> int:
    v = raw.get(key)
    if isinstance(v, bool):
        return int(v)
    if isinstance(v, int):
        return v
    return 0


def _str_tuple(raw: Mapping[str, Any], key: str, *, where: str) -> tuple[str, ...]:
    v = raw.get(key)
    if v is None:
        return ()
    if not isinstance(v, list):
        raise MalformedResponse(f"Expected list at {where}.{key}, got {type(v).__name__}")
    return tuple(str(x) for x in v)


@dataclass(frozen=True, slots=True)
class ChangelogEntry:
    """
    一条已发布的更新日志记录（对应 changelog 接口 data[] 中的一项）。

    说明：
    - version 只做字符串相等比较，不解析、不排序
    - release_at / size 仅用于通知展示
    - change_mod 非空表示本次更新涉及 Mod
    - 其余字段原样携带，检查周期本身不使用
    """

    version: str
    release_at: str = ""
    size: str = ""
    change_mod: tuple[str, ...] = ()
    change_mission: tuple[str, ...] = ()
    change_map: tuple[str, ...] = ()
    note: str = ""
    active: int = 0
    realliferpg: int = 0
    id: int = 0
    created_at: str = ""
    updated_at: str = ""

    @property
    def has_mod_update(self) -> bool:
        return len(self.change_mod) > 0

    @classmethod
    def from_json_dict(cls, raw: Any, *, where: str = "$") -> ChangelogEntry:
        if not isinstance(raw, dict):
            raise MalformedResponse(f"Expected object at {where}, got {type(raw).__name__}")
        version = raw.get("version")
        if not isinstance(version, str):
            raise MalformedResponse(f"Expected string at {where}.version, got {type(version).__name__}")
        return cls(
            version=version,
            release_at=_str_field(raw, "release_at"),
            size=_str_field(raw, "size"),
            change_mod=_str_tuple(raw, "change_mod", where=where),
            change_mission=_str_tuple(raw, "change_mission", where=where),
            change_map=_str_tuple(raw, "change_map", where=where),
            note=_str_field(raw, "note"),
            active=_int_field(raw, "active"),
            realliferpg=_int_field(raw, "realliferpg"),
            id=_int_field(raw, "id"),
            created_at=_str_field(raw, "created_at"),
            updated_at=_str_field(raw, "updated_at"),
        )


@dataclass(frozen=True, slots=True)
class ChangelogResponse:
    data: tuple[ChangelogEntry, ...]
    requested_at: int

    @classmethod
    def from_json_dict(cls, raw: Any) -> ChangelogResponse:
        """
        解析接口响应：{ "data": [ ... ], "requested_at": 1700000000 }

        data 的顺序按接口返回原样保留（最新的在最前）。
        """
        if not isinstance(raw, dict):
            raise MalformedResponse(f"Expected object at $, got {type(raw).__name__}")
        items = raw.get("data")
        if not isinstance(items, list):
            raise MalformedResponse(f"Expected list at $.data, got {type(items).__name__}")
        requested_at = raw.get("requested_at", 0)
        if isinstance(requested_at, bool) or not isinstance(requested_at, (int, float)):
            raise MalformedResponse(f"Expected number at $.requested_at, got {type(requested_at).__name__}")
        entries = tuple(ChangelogEntry.from_json_dict(it, where=f"$.data[{i}]") for i, it in enumerate(items))
        return cls(data=entries, requested_at=int(requested_at))


@dataclass(frozen=True, slots=True)
class VersionRecord:
    """
    唯一的持久化事实：最近一次已通知（或启动时初始化）的版本号。
    """

    version: str


@dataclass(frozen=True, slots=True)
class NotificationPayload:
    content: str
    version: str
    size: str
    release_at: str
    has_mod_update: str

    def to_json_dict(self) -> dict[str, str]:
        return {
            "content": self.content,
            "hasModUpdate": self.has_mod_update,
            "releaseAt": self.release_at,
            "size": self.size,
            "version": self.version,
        }
