"""
Tests for the responsive layout observer.
"""

from components.parking_map.layout import ResponsiveLayoutObserver, UiMode, ui_mode_for_width


class TestUiModeForWidth:

    def test_breakpoint_is_inclusive(self):
        assert ui_mode_for_width(768) == UiMode.MOBILE
        assert ui_mode_for_width(769) == UiMode.DESKTOP
        assert ui_mode_for_width(375) == UiMode.MOBILE

    def test_unknown_width_is_desktop(self):
        assert ui_mode_for_width(None) == UiMode.DESKTOP

    def test_custom_breakpoint(self):
        assert ui_mode_for_width(900, breakpoint_px=1024) == UiMode.MOBILE


class TestResponsiveLayoutObserver:

    def setup_method(self):
        self.observer = ResponsiveLayoutObserver(initial_width=1280)
        self.seen = []

    def test_subscribe_receives_current_mode(self):
        self.observer.subscribe(self.seen.append)
        assert self.seen == [UiMode.DESKTOP]

    def test_notifies_only_on_mode_change(self):
        self.observer.subscribe(self.seen.append)

        self.observer.update(1024)
        self.observer.update(600)
        self.observer.update(500)
        self.observer.update(1000)

        assert self.seen == [UiMode.DESKTOP, UiMode.MOBILE, UiMode.DESKTOP]

    def test_unsubscribe_releases_callback(self):
        unsubscribe = self.observer.subscribe(self.seen.append)
        assert self.observer.subscriber_count == 1

        unsubscribe()
        unsubscribe()
        self.observer.update(400)

        assert self.observer.subscriber_count == 0
        assert self.seen == [UiMode.DESKTOP]
        assert self.observer.mode == UiMode.MOBILE
