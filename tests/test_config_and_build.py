import json
import os
import sys
import tempfile
import unittest


sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))


from pun.config import DEFAULT_SCHEDULE, DEFAULT_VERSION_PATH, load_config  # noqa: E402
from pun.notify.webhook import WebhookNotifier  # noqa: E402
from pun.runner import build_cycle  # noqa: E402
from pun.sources.panthor import DEFAULT_CHANGELOG_URL  # noqa: E402
from pun.state.file_store import FileVersionStore  # noqa: E402
from pun.state.memory_store import MemoryVersionStore  # noqa: E402


LEGACY_CONFIG = """\
app:
  interval: "0 */5 * * * *"
  load_on_startup: true
notification:
  webhooks:
    - https://discord.com/api/webhooks/1/a
    - https://example.org/hook
"""


def _write(td: str, name: str, text: str) -> str:
    path = os.path.join(td, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


class TestConfigAndBuild(unittest.TestCase):
    def test_load_legacy_yaml_layout(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            config = load_config(_write(td, "config.yml", LEGACY_CONFIG))

        self.assertEqual(config.schedule, "0 */5 * * * *")
        self.assertTrue(config.run_on_startup)
        self.assertEqual(
            config.webhooks,
            ("https://discord.com/api/webhooks/1/a", "https://example.org/hook"),
        )
        self.assertEqual(config.changelog_url, DEFAULT_CHANGELOG_URL)
        self.assertEqual(config.version_path, DEFAULT_VERSION_PATH)
        self.assertEqual(config.timeout_seconds, 20.0)

    def test_defaults_for_empty_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            config = load_config(_write(td, "config.yml", ""))

        self.assertEqual(config.schedule, DEFAULT_SCHEDULE)
        self.assertFalse(config.run_on_startup)
        self.assertEqual(config.endpoints(), ())

    def test_json_config_is_accepted(self) -> None:
        cfg = {
            "app": {"interval": "@hourly"},
            "source": {"url": "http://127.0.0.1:8080/changelog"},
            "state": {"version_path": ":memory:"},
            "http": {"timeout_seconds": 5},
        }
        with tempfile.TemporaryDirectory() as td:
            config = load_config(_write(td, "config.json", json.dumps(cfg)))

        self.assertEqual(config.schedule, "@hourly")
        self.assertEqual(config.changelog_url, "http://127.0.0.1:8080/changelog")
        self.assertEqual(config.timeout_seconds, 5.0)

    def test_non_mapping_root_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = _write(td, "config.yml", "- just\n- a list\n")
            with self.assertRaises(ValueError):
                load_config(path)

    def test_webhooks_from_env_are_merged(self) -> None:
        text = LEGACY_CONFIG + "  webhooks_env: PUN_TEST_WEBHOOKS\n"
        with tempfile.TemporaryDirectory() as td:
            config = load_config(_write(td, "config.yml", text))

        os.environ["PUN_TEST_WEBHOOKS"] = "https://example.org/hook, https://env.example/h ,"
        try:
            with self.assertLogs("pun.config", level="WARNING") as logs:
                endpoints = config.endpoints()
        finally:
            os.environ.pop("PUN_TEST_WEBHOOKS", None)

        self.assertEqual(
            endpoints,
            (
                "https://discord.com/api/webhooks/1/a",
                "https://example.org/hook",
                "https://env.example/h",
            ),
        )
        self.assertEqual(len(logs.output), 1)
        self.assertIn("duplicate webhook ignored: endpoint=https://example.org/...", logs.output[0])

    def test_build_cycle_wires_components(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            version_path = os.path.join(td, "version.yml")
            text = LEGACY_CONFIG + f"state:\n  version_path: {json.dumps(version_path)}\nhttp:\n  timeout_seconds: 4\n"
            cycle = build_cycle(load_config(_write(td, "config.yml", text)))

        self.assertIsInstance(cycle.store, FileVersionStore)
        self.assertEqual(cycle.store.path, version_path)
        self.assertIsInstance(cycle.notifier, WebhookNotifier)
        self.assertEqual(cycle.notifier.http.timeout_seconds, 4.0)
        self.assertEqual(cycle.source.key(), f"panthor:{DEFAULT_CHANGELOG_URL}")
        self.assertEqual(len(cycle.endpoints), 2)

    def test_memory_state_path(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            text = LEGACY_CONFIG + 'state:\n  version_path: ":memory:"\n'
            cycle = build_cycle(load_config(_write(td, "config.yml", text)))
        self.assertIsInstance(cycle.store, MemoryVersionStore)
