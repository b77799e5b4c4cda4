from __future__ import annotations

from typing import Protocol

from ..models import NotificationPayload


class Notifier(Protocol):
    """
    通知接口：把一条消息投递到一个 endpoint。

    v0 约定：
    - deliver 失败抛 DeliveryFailed，由 CheckCycle 逐个 endpoint 捕获并记录
    - 单次尝试，不重试
    """

    def channel(self) -> str: ...

    def deliver(self, endpoint: str, payload: NotificationPayload) -> None: ...
