"""
Unit tests for change notification.
"""

from ielts_center.events import ChangeAction, ChangeEvent, ChangeNotifier, EntityRef


class TestChangeEvent:

    def test_affects_self_and_parents(self):
        event = ChangeEvent(
            entity="ielts_question",
            entity_id=5,
            action=ChangeAction.UPDATED,
            parents=(EntityRef("ielts_section", 2), EntityRef("ielts_test", 1)),
        )

        assert event.affects("ielts_question", 5)
        assert event.affects("ielts_section", 2)
        assert event.affects("ielts_test", 1)
        assert not event.affects("ielts_test", 2)

    def test_ref_str(self):
        assert str(EntityRef("quiz", 3)) == "quiz:3"


class TestChangeNotifier:

    def test_notify_publishes_to_subscribers(self):
        """Should deliver one event per notify() to every subscriber."""
        notifier = ChangeNotifier()
        first, second = [], []
        notifier.subscribe(first.append)
        notifier.subscribe(second.append)

        event = notifier.notify("ielts_question", 5, ChangeAction.CREATED, ("ielts_section", 2), ("ielts_test", 1))

        assert first == [event]
        assert second == [event]
        assert event.parents == (EntityRef("ielts_section", 2), EntityRef("ielts_test", 1))

    def test_unsubscribe(self):
        notifier = ChangeNotifier()
        received = []
        unsubscribe = notifier.subscribe(received.append)

        unsubscribe()
        notifier.notify("quiz", 1, ChangeAction.DELETED)

        assert received == []

    def test_unsubscribe_twice_is_harmless(self):
        notifier = ChangeNotifier()
        unsubscribe = notifier.subscribe(lambda event: None)

        unsubscribe()
        unsubscribe()

    def test_failing_subscriber_does_not_block_others(self):
        """Should keep delivering when a subscriber raises."""
        notifier = ChangeNotifier()
        received = []

        def broken(event):
            raise RuntimeError("cache unavailable")

        notifier.subscribe(broken)
        notifier.subscribe(received.append)

        notifier.notify("writing_submission", 9, ChangeAction.GRADED)

        assert [e.entity_id for e in received] == [9]
