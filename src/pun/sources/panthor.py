from __future__ import annotations

import urllib.error
from dataclasses import dataclass

from ..errors import MalformedResponse, SourceUnavailable
from ..http_utils import HttpClient
from ..models import ChangelogEntry, ChangelogResponse

DEFAULT_CHANGELOG_URL = "https://api.panthor.de/v1/changelog"


@dataclass(slots=True)
class PanthorChangelogSource:
    """
    Panthor changelog 接口：GET 一次，返回 { data: [...], requested_at: number }。

    只有 HTTP 200 视为成功；其他状态码（包括 2xx 的其余值）一律视为不可用。
    """

    http: HttpClient
    url: str = DEFAULT_CHANGELOG_URL

    def key(self) -> str:
        return f"panthor:{self.url}"

    def fetch_latest_entries(self) -> tuple[ChangelogEntry, ...]:
        try:
            resp = self.http.get(self.url, headers={"Accept": "application/json"})
        except urllib.error.HTTPError as e:
            raise SourceUnavailable(f"changelog request failed: status={e.code} url={self.url}") from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise SourceUnavailable(f"changelog request failed: url={self.url} error={e}") from e

        if resp.status != 200:
            raise SourceUnavailable(f"changelog unexpected status: status={resp.status} url={resp.url}")

        try:
            data = resp.json()
        except ValueError as e:
            body_prefix = resp.text()[:400]
            raise MalformedResponse(
                f"changelog invalid JSON: url={resp.url} body_prefix={body_prefix!r}"
            ) from e

        return ChangelogResponse.from_json_dict(data).data
