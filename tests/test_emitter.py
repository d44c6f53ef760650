from walletguard.emitter import EventEmitter
from walletguard.types import WalletEvent


class TestEventEmitter:
    """Test listener registration and delivery."""

    def test_handlers_run_in_registration_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.on(WalletEvent.AUTHENTICATED, lambda payload: calls.append(("a", payload)))
        emitter.on(WalletEvent.AUTHENTICATED, lambda payload: calls.append(("b", payload)))

        emitter.emit(WalletEvent.AUTHENTICATED, 42)

        assert calls == [("a", 42), ("b", 42)]

    def test_enum_and_string_names_are_interchangeable(self):
        emitter = EventEmitter()
        calls = []
        emitter.on("logged_out", calls.append)

        emitter.emit(WalletEvent.LOGGED_OUT, {"reason": "logout"})

        assert calls == [{"reason": "logout"}]
        assert emitter.listener_count(WalletEvent.LOGGED_OUT) == 1

    def test_off_removes_by_identity(self):
        emitter = EventEmitter()
        calls = []

        def handler(payload):
            calls.append(payload)

        emitter.on(WalletEvent.ERROR, handler)
        emitter.off(WalletEvent.ERROR, handler)
        emitter.emit(WalletEvent.ERROR, "boom")

        assert calls == []

    def test_off_removes_only_first_registration(self):
        emitter = EventEmitter()
        calls = []

        def handler(payload):
            calls.append(payload)

        emitter.on(WalletEvent.ERROR, handler)
        emitter.on(WalletEvent.ERROR, handler)

        emitter.off(WalletEvent.ERROR, handler)
        emitter.emit(WalletEvent.ERROR, "x")

        assert calls == ["x"]

    def test_off_unknown_handler_is_ignored(self):
        emitter = EventEmitter()
        emitter.off(WalletEvent.ERROR, print)
        assert emitter.listener_count(WalletEvent.ERROR) == 0

    def test_failing_handler_does_not_stop_others(self):
        emitter = EventEmitter()
        calls = []

        def broken(payload):
            raise RuntimeError("listener bug")

        emitter.on(WalletEvent.SECURITY_ALERT, broken)
        emitter.on(WalletEvent.SECURITY_ALERT, calls.append)

        emitter.emit(WalletEvent.SECURITY_ALERT, "alert")

        assert calls == ["alert"]

    def test_handler_may_unsubscribe_during_emit(self):
        emitter = EventEmitter()
        calls = []

        def once(payload):
            calls.append(payload)
            emitter.off(WalletEvent.AUTHENTICATED, once)

        emitter.on(WalletEvent.AUTHENTICATED, once)
        emitter.emit(WalletEvent.AUTHENTICATED, 1)
        emitter.emit(WalletEvent.AUTHENTICATED, 2)

        assert calls == [1]
