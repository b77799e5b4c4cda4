from __future__ import annotations

from ..models import ChangelogEntry, NotificationPayload


def format_update_text(entry: ChangelogEntry) -> str:
    return f"New version {entry.version} is available!"


def build_payload(entry: ChangelogEntry) -> NotificationPayload:
    """
    v0：webhook 消息体与旧版保持一致，hasModUpdate 以字符串 "true"/"false" 表示。
    """
    return NotificationPayload(
        content=format_update_text(entry),
        version=entry.version,
        size=entry.size,
        release_at=entry.release_at,
        has_mod_update="true" if entry.has_mod_update else "false",
    )
