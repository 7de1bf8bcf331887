"""Data change notifier."""

from monev.services.notifier import DataChangeNotifier


class TestDataChangeNotifier:
    def test_revision_increments(self):
        notifier = DataChangeNotifier()
        assert notifier.revision == 0
        assert notifier.notify('add_submission') == 1
        assert notifier.notify() == 2
        assert notifier.revision == 2

    def test_listeners_receive_revision(self):
        notifier = DataChangeNotifier()
        seen = []
        unsubscribe = notifier.subscribe(seen.append)

        notifier.notify()
        unsubscribe()
        notifier.notify()

        assert seen == [1]

    def test_broken_listener_does_not_stop_others(self):
        notifier = DataChangeNotifier()
        seen = []

        def broken(revision):
            raise RuntimeError('listener gone')

        notifier.subscribe(broken)
        notifier.subscribe(seen.append)

        assert notifier.notify() == 1
        assert seen == [1]
