from statusbar.clock import VirtualClock


def test_virtual_clock_runs_callbacks_in_due_order() -> None:
    clock = VirtualClock(start_ms=1000)
    fired: list[tuple[str, int]] = []
    clock.call_later(300, lambda: fired.append(("b", clock.now_ms())))
    clock.call_later(100, lambda: fired.append(("a", clock.now_ms())))
    clock.call_later(300, lambda: fired.append(("c", clock.now_ms())))

    clock.advance(250)
    assert fired == [("a", 1100)]
    clock.advance(50)
    assert fired == [("a", 1100), ("b", 1300), ("c", 1300)]
    assert clock.now_ms() == 1300


def test_cancelled_timer_does_not_fire() -> None:
    clock = VirtualClock()
    fired: list[str] = []
    handle = clock.call_later(10, lambda: fired.append("x"))
    assert handle.pending
    handle.cancel()
    assert not handle.pending
    clock.advance(100)
    assert fired == []
    assert clock.pending_count() == 0


def test_timers_armed_inside_callbacks_fire_within_same_advance() -> None:
    clock = VirtualClock()
    fired: list[int] = []

    def first() -> None:
        fired.append(clock.now_ms())
        clock.call_later(20, lambda: fired.append(clock.now_ms()))

    clock.call_later(10, first)
    clock.advance(100)
    assert fired == [10, 30]
    assert clock.now_ms() == 100
