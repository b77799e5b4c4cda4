from __future__ import annotations

import json
import ssl
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    url: str
    headers: Mapping[str, str]
    body: bytes

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


class HttpClient:
    """
    轻量 HTTP 客户端（仅依赖标准库），供 changelog 拉取与 webhook 投递共用。

    v0 策略：
    - 统一超时、User-Agent，始终校验证书
    - 不做重试：失败直接抛出，由调用方决定如何处理（下一个调度周期自然会再试）
    - urllib 对 4xx/5xx 抛 HTTPError，调用方需要自行区分
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 20.0,
        user_agent: str = "panthor-update-notifier/0",
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> HttpResponse:
        request_headers = {"User-Agent": self._user_agent}
        if headers:
            request_headers.update(dict(headers))
        req = urllib.request.Request(url=url, headers=request_headers, method="GET")
        return self._send(req)

    def post_json(self, url: str, payload: Any, *, headers: Mapping[str, str] | None = None) -> HttpResponse:
        request_headers = {
            "User-Agent": self._user_agent,
            "Content-Type": "application/json",
        }
        if headers:
            request_headers.update(dict(headers))
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        req = urllib.request.Request(url=url, data=data, headers=request_headers, method="POST")
        return self._send(req)

    def _send(self, req: urllib.request.Request) -> HttpResponse:
        with urllib.request.urlopen(req, timeout=self._timeout_seconds, context=self._ssl_context) as resp:  # noqa: S310
            resp_headers = {k: v for k, v in resp.headers.items()}
            return HttpResponse(
                status=getattr(resp, "status", 200),
                url=resp.geturl(),
                headers=resp_headers,
                body=resp.read(),
            )


def redact_url(url: str) -> str:
    """
    webhook URL 往往自带 token（如 Discord 的 /api/webhooks/<id>/<token>），
    日志中只保留 scheme 与 host。
    """
    parsed = urllib.parse.urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return "<invalid-url>"
    return f"{parsed.scheme}://{parsed.netloc}/..."
