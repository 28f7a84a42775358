from core.debounce import Debouncer


class TestDebouncer:
    def test_only_last_call_runs_after_quiet_window(self, clock):
        calls = []
        d = Debouncer(0.3, clock=clock)
        for text in ["n", "no", "nor"]:
            d.schedule(calls.append, text)
            clock.advance(0.1)
        assert d.fire_if_due() is False
        assert calls == []
        clock.advance(0.3)
        assert d.fire_if_due() is True
        assert calls == ["nor"]
        assert not d.pending

    def test_schedule_restarts_the_window(self, clock):
        calls = []
        d = Debouncer(0.3, clock=clock)
        d.schedule(calls.append, 1)
        clock.advance(0.25)
        d.schedule(calls.append, 2)
        clock.advance(0.25)
        assert not d.fire_if_due()
        clock.advance(0.1)
        assert d.fire_if_due()
        assert calls == [2]

    def test_flush_runs_immediately(self, clock):
        calls = []
        d = Debouncer(10, clock=clock)
        d.schedule(calls.append, "x")
        assert d.flush() is True
        assert calls == ["x"]
        assert d.flush() is False

    def test_cancel_drops_pending_call(self, clock):
        calls = []
        d = Debouncer(0.1, clock=clock)
        d.schedule(calls.append, "x")
        d.cancel()
        clock.advance(1)
        assert not d.fire_if_due()
        assert calls == []

    def test_keyword_arguments_are_forwarded(self, clock):
        seen = {}
        d = Debouncer(0, clock=clock)
        d.schedule(seen.update, a=1)
        assert d.fire_if_due()
        assert seen == {"a": 1}
