import copy
import os
import sys
import unittest


sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))


from statusbar.models import content_hash  # noqa: E402
from statusbar.rules.policy import is_stale, reconcile  # noqa: E402


NOW = 1_700_000_000_000


class TestReconcile(unittest.TestCase):
    def test_only_active_alerts_are_displayable(self) -> None:
        feed = [{"id": "a", "msg": "Hi", "active": True}, {"id": "b", "msg": "Bye", "active": False}]
        result = reconcile(feed, {}, NOW)
        self.assertEqual([a.id for a in result], ["a"])
        self.assertEqual(result[0].message, "Hi")

    def test_dismissed_alert_is_excluded(self) -> None:
        feed = [{"id": "a", "msg": "Hi", "active": True}, {"id": "b", "msg": "Bye", "active": True}]
        result = reconcile(feed, {"a": NOW}, NOW)
        self.assertEqual([a.id for a in result], ["b"])

    def test_dismissal_by_content_hash_matches_explicit_id_alert(self) -> None:
        feed = [{"id": "a", "msg": "Hi", "active": True}]
        self.assertEqual(reconcile(feed, {content_hash("Hi"): NOW}, NOW), ())

    def test_malformed_input_is_dropped(self) -> None:
        self.assertEqual(reconcile(None, {}, NOW), ())
        self.assertEqual(reconcile({"msg": "Hi", "active": True}, {}, NOW), ())
        self.assertEqual(reconcile("[]", {}, NOW), ())
        feed = [None, 3, "x", {"active": True}, {"msg": "ok", "active": True}]
        self.assertEqual([a.message for a in reconcile(feed, None, NOW)], ["ok"])

    def test_priority_sorts_descending_with_stable_ties(self) -> None:
        feed = [
            {"id": "low", "msg": "low", "active": True, "priority": 1},
            {"id": "none", "msg": "none", "active": True},
            {"id": "high1", "msg": "high one", "active": True, "priority": 5},
            {"id": "high2", "msg": "high two", "active": True, "priority": 5},
        ]
        result = reconcile(feed, {}, NOW)
        self.assertEqual([a.id for a in result], ["high1", "high2", "low", "none"])
        priorities = [a.priority or 0.0 for a in result]
        self.assertEqual(priorities, sorted(priorities, reverse=True))

    def test_non_finite_priority_sorts_as_missing(self) -> None:
        feed = [
            {"id": "nan", "msg": "nan", "active": True, "priority": float("nan")},
            {"id": "two", "msg": "two", "active": True, "priority": 2},
            {"id": "one", "msg": "one", "active": True, "priority": 1},
        ]
        result = reconcile(feed, {}, NOW)
        self.assertEqual([a.id for a in result], ["two", "one", "nan"])
        self.assertIsNone(result[2].priority)

    def test_feed_order_kept_without_priorities(self) -> None:
        feed = [{"msg": m, "active": True} for m in ("c", "a", "b")]
        self.assertEqual([a.message for a in reconcile(feed, {}, NOW)], ["c", "a", "b"])

    def test_duplicates_by_content_are_collapsed(self) -> None:
        feed = [
            {"id": "1", "msg": "Same text", "active": True},
            {"id": "2", "msg": "Same text", "active": True, "priority": 3},
            {"id": "3", "msg": "Other", "active": True},
        ]
        result = reconcile(feed, {}, NOW)
        self.assertEqual([a.id for a in result], ["2", "3"])

    def test_reconcile_is_pure(self) -> None:
        feed = [
            {"msg": "Hi", "active": True, "priority": 1},
            {"id": 9, "msg": "Bye", "active": True, "dismissable": True},
        ]
        dismissed = {"zzz": NOW}
        feed_before = copy.deepcopy(feed)
        first = reconcile(feed, dismissed, NOW)
        second = reconcile(feed, dismissed, NOW)
        self.assertEqual(first, second)
        self.assertEqual(feed, feed_before)
        self.assertEqual(dismissed, {"zzz": NOW})


class TestIsStale(unittest.TestCase):
    def test_never_fetched_is_stale(self) -> None:
        for ttl in (0, 1, 1_800_000):
            self.assertTrue(is_stale(0, NOW, ttl))
            self.assertTrue(is_stale(None, NOW, ttl))

    def test_recent_fetch_is_fresh(self) -> None:
        for ttl in (2, 60_000, 1_800_000):
            self.assertFalse(is_stale(NOW - 1, NOW, ttl))

    def test_expired_fetch_is_stale(self) -> None:
        self.assertFalse(is_stale(NOW - 1000, NOW, 1000))
        self.assertTrue(is_stale(NOW - 1001, NOW, 1000))
