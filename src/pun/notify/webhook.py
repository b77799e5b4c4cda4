from __future__ import annotations

import urllib.error
from dataclasses import dataclass

from ..errors import DeliveryFailed
from ..http_utils import HttpClient, redact_url
from ..models import NotificationPayload
from .base import Notifier


@dataclass(slots=True)
class WebhookNotifier(Notifier):
    """
    通用 JSON webhook 通知（Discord / 自建服务等）。

    说明：
    - 每个 endpoint 只发一次 POST，body 为 NotificationPayload.to_json_dict()
    - 只有 HTTP 200 视为投递成功；204 等其他 2xx 同样算失败
    """

    http: HttpClient

    def channel(self) -> str:
        return "webhook"

    def deliver(self, endpoint: str, payload: NotificationPayload) -> None:
        target = redact_url(endpoint)
        try:
            resp = self.http.post_json(endpoint, payload.to_json_dict())
        except urllib.error.HTTPError as e:
            raise DeliveryFailed(
                f"webhook failed: endpoint={target} status={e.code}",
                endpoint=endpoint,
                status=e.code,
            ) from e
        except (urllib.error.URLError, TimeoutError, OSError, ValueError) as e:
            raise DeliveryFailed(f"webhook failed: endpoint={target} error={e}", endpoint=endpoint) from e

        if resp.status != 200:
            raise DeliveryFailed(
                f"webhook unexpected status: endpoint={target} status={resp.status} body={resp.body[:200]!r}",
                endpoint=endpoint,
                status=resp.status,
            )
