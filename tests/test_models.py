from statusbar.models import Alert, content_hash, parse_alert


def test_content_hash_known_values() -> None:
    """
    与浏览器版 banner 的 getHash 输出一致，跨会话的 dismissal 才能继续生效。
    """
    assert content_hash("") == "0"
    assert content_hash("a") == "2p"
    assert content_hash("Hi") == "1sx"
    # 非 BMP 字符只取第一个 UTF-16 码元（高代理项 0xD83D）
    assert content_hash("😀") == "16pp"


def test_content_hash_is_deterministic_and_32bit() -> None:
    text = "Scheduled maintenance tonight from 22:00 to 23:30 UTC, expect short outages. " * 5
    h1 = content_hash(text)
    h2 = content_hash(str(text))
    assert h1 == h2
    value = int(h1, 36)
    assert -(2**31) <= value < 2**31


def test_content_hash_distinguishes_close_messages() -> None:
    assert content_hash("Service degraded") != content_hash("Service degraded.")


def test_parse_alert_accepts_msg_or_message() -> None:
    a = parse_alert({"id": "a", "msg": "Hi", "active": True})
    b = parse_alert({"id": 7, "message": "Bye", "active": True, "dismissable": True, "priority": 2, "level": "danger"})
    assert a == Alert(id="a", message="Hi", link="#", active=True)
    assert b is not None
    assert b.id == "7"
    assert b.dismissable is True
    assert b.priority == 2.0
    assert b.level == "danger"


def test_parse_alert_derives_id_without_mutating_input() -> None:
    raw = {"msg": "Hi", "active": True, "link": "https://example.com/status"}
    alert = parse_alert(raw)
    assert alert is not None
    assert alert.id == content_hash("Hi")
    assert alert.link == "https://example.com/status"
    assert "id" not in raw


def test_parse_alert_drops_malformed_entries() -> None:
    assert parse_alert(None) is None
    assert parse_alert("Hi") is None
    assert parse_alert({"active": True}) is None
    assert parse_alert({"msg": "", "active": True}) is None
    assert parse_alert({"msg": "   ", "active": True}) is None
    assert parse_alert({"msg": 42, "active": True}) is None


def test_parse_alert_requires_real_booleans() -> None:
    alert = parse_alert({"msg": "Hi", "active": "yes", "dismissable": 1, "priority": True})
    assert alert is not None
    assert alert.active is False
    assert alert.dismissable is False
    assert alert.priority is None


def test_parse_alert_ignores_non_finite_priority() -> None:
    for value in (float("nan"), float("inf"), float("-inf"), 10**400):
        alert = parse_alert({"msg": "Hi", "active": True, "priority": value})
        assert alert is not None
        assert alert.priority is None
