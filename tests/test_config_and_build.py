import io
import json
import os
import sys
import tempfile
import unittest


sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))


from statusbar.clock import VirtualClock  # noqa: E402
from statusbar.config import load_config, parse_config  # noqa: E402
from statusbar.orchestrator import build_orchestrator  # noqa: E402
from statusbar.render.console import ConsoleSurface  # noqa: E402
from statusbar.sources.feed import FeedSource  # noqa: E402
from statusbar.state.sqlite_store import SqliteKeyValueStore  # noqa: E402


class TestConfigAndBuild(unittest.TestCase):
    def test_defaults(self) -> None:
        config = parse_config({})
        self.assertEqual(config.feed_url, "data.json")
        self.assertEqual(config.rotation.min_dwell_ms, 5000)
        self.assertEqual(config.rotation.pad_ms, 2000)
        self.assertEqual(config.rotation.reading_wpm, 180.0)
        self.assertEqual(config.rotation.transition_ms, 400)
        self.assertEqual(config.poll_interval_ms, 60_000)
        self.assertEqual(config.cache_ttl_ms, 1_800_000)
        self.assertEqual(config.dismiss_retention_days, 7)
        self.assertEqual(config.state_key, "app_banner_system")
        self.assertEqual(config.http.max_retries, 0)

    def test_invalid_sections(self) -> None:
        with self.assertRaises(ValueError):
            parse_config([])
        with self.assertRaises(ValueError):
            parse_config({"rotation": "fast"})
        with self.assertRaises(ValueError):
            parse_config({"rotation": {"reading_wpm": 0}})

    def test_lenient_scalars(self) -> None:
        config = parse_config({"poll_interval_seconds": "abc", "cache_ttl_seconds": True, "min_viewport_width": -5})
        self.assertEqual(config.poll_interval_seconds, 60)
        self.assertEqual(config.cache_ttl_seconds, 1800)
        self.assertEqual(config.min_viewport_width, 0)

    def test_build_orchestrator_wires_file_feed_and_sqlite(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            feed_path = os.path.join(td, "alerts.json")
            with open(feed_path, "w", encoding="utf-8") as f:
                json.dump(
                    [
                        {"id": "m1", "msg": "Maintenance tonight", "active": True, "priority": 1},
                        {"msg": "Incident resolved", "active": True, "priority": 9, "level": "info"},
                    ],
                    f,
                )
            cfg = {
                "feed_url": feed_path,
                "poll_interval_seconds": 30,
                "rotation": {"transition_ms": 250},
                "state": {"sqlite_path": os.path.join(td, "state.sqlite3"), "key": "banner"},
            }
            path = os.path.join(td, "config.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(cfg, f, ensure_ascii=False)

            config = load_config(path)
            clock = VirtualClock(start_ms=1_700_000_000_000)
            surface = ConsoleSurface(stream=io.StringIO(), columns=100)
            orch = build_orchestrator(config, clock=clock, surface=surface)

            self.assertIsInstance(orch.source, FeedSource)
            self.assertIsInstance(orch.store.backend, SqliteKeyValueStore)
            self.assertEqual(orch.store.key, "banner")
            self.assertEqual(orch.poll_interval_ms, 30_000)
            self.assertEqual(orch.banner.transition_ms, 250)

            self.assertTrue(orch.start())
            self.assertEqual([a.message for a in orch.banner.displayable], ["Incident resolved", "Maintenance tonight"])
            self.assertEqual(surface.stream.getvalue().splitlines(), ["[info] Incident resolved →"])
            self.assertEqual(orch.store.load(clock.now_ms()).last_fetch, 1_700_000_000_000)
            orch.stop()
