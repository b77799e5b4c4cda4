"""
Panthor Update Notifier (pun)

按调度轮询 Panthor changelog 接口，发现新版本后先落盘版本号，
再向配置的全部 webhook 逐个发送通知（单个失败互不影响）。
"""

from .models import ChangelogEntry, NotificationPayload, VersionRecord

__all__ = [
    "ChangelogEntry",
    "NotificationPayload",
    "VersionRecord",
]
