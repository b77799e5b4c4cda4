import json

import pytest

from pun import main as main_module
from pun.main import _resolve_log_level, build_arg_parser, main


class _FakeResponse:
    def __init__(self, body: bytes, status: int = 200) -> None:
        self.status = status
        self.headers = {}
        self._body = body

    def read(self) -> bytes:
        return self._body

    def geturl(self) -> str:
        return "http://changelog.test/v1/changelog"

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None


def _write_config(tmp_path, version_path: str) -> str:  # noqa: ANN001
    path = tmp_path / "config.yml"
    path.write_text(
        "app:\n"
        "  interval: '@every 1m'\n"
        "notification:\n"
        "  webhooks: ['http://hook.test/x']\n"
        "source:\n"
        "  url: http://changelog.test/v1/changelog\n"
        "state:\n"
        f"  version_path: {json.dumps(version_path)}\n",
        encoding="utf-8",
    )
    return str(path)


def test_arg_parser_modes_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args(["--once", "--daemon"])
    args = build_arg_parser().parse_args([])
    assert args.config == "config.yml"
    assert args.once is False


def test_resolve_log_level() -> None:
    assert _resolve_log_level("debug") == 10
    assert _resolve_log_level(None) == 20
    assert _resolve_log_level("nonsense") == 20


def test_once_seeds_then_announces(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001
    version_path = str(tmp_path / "version.yml")
    config_path = _write_config(tmp_path, version_path)
    posts: list[dict] = []
    current = {"version": "1.0"}

    def _fake_urlopen(req, **_kwargs):  # noqa: ANN001
        if req.get_method() == "POST":
            posts.append(json.loads(req.data.decode("utf-8")))
            return _FakeResponse(b"")
        body = json.dumps({"data": [{"version": current["version"]}], "requested_at": 1})
        return _FakeResponse(body.encode("utf-8"))

    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen)

    assert main(["--config", config_path, "--once"]) == 0
    assert posts == []

    current["version"] = "1.1"
    assert main(["--config", config_path, "--once"]) == 0
    assert [p["version"] for p in posts] == ["1.1"]


def test_once_returns_1_when_cycle_fails(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001
    config_path = _write_config(tmp_path, str(tmp_path / "version.yml"))
    monkeypatch.setattr("urllib.request.urlopen", lambda *_a, **_k: _FakeResponse(b"not json"))

    assert main(["--config", config_path, "--once"]) == 1


def test_daemon_mode_runs_scheduler(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001
    config_path = _write_config(tmp_path, ":memory:")
    calls = []

    class _FakeScheduler:
        def __init__(self, cycle, *, schedule, run_on_startup) -> None:  # noqa: ANN001
            calls.append((schedule, run_on_startup, cycle.endpoints))

        def run_forever(self) -> None:
            calls.append("run_forever")

    monkeypatch.setattr(main_module, "Scheduler", _FakeScheduler)

    assert main(["--config", config_path]) == 0
    assert calls == [("@every 1m", False, ("http://hook.test/x",)), "run_forever"]
