import pytest

from conftest import InMemoryNotifications
from hrm_system.core.exceptions import ForbiddenError, NotFoundError
from hrm_system.notifications.service import NotificationService


def test_notify_skips_missing_recipient():
    repo = InMemoryNotifications()
    svc = NotificationService(repo)

    assert svc.notify(user_id=None, title="Hello") is False
    assert repo.items == {}


def test_delivery_failure_is_swallowed():
    svc = NotificationService(InMemoryNotifications(fail=True))
    assert svc.notify(user_id=1, title="Hello") is False


def test_notify_many_deduplicates_recipients():
    repo = InMemoryNotifications()
    svc = NotificationService(repo)

    sent = svc.notify_many([5, 6, 5, None], title="Payroll generated", type="payroll")

    assert sent == 2
    assert repo.titles_for(5) == ["Payroll generated"]


def test_inbox_lists_newest_first_and_filters_unread():
    repo = InMemoryNotifications()
    svc = NotificationService(repo)
    for title in ("first", "second", "third"):
        svc.notify(user_id=7, title=title)
    svc.notify(user_id=8, title="other")

    assert [n.title for n in svc.list_for_user(user_id=7)] == ["third", "second", "first"]

    svc.mark_read(notification_id=3, user_id=7)
    assert [n.title for n in svc.list_for_user(user_id=7, only_unread=True)] == ["second", "first"]


def test_mark_read_checks_owner():
    repo = InMemoryNotifications()
    svc = NotificationService(repo)
    svc.notify(user_id=7, title="mine")

    with pytest.raises(ForbiddenError):
        svc.mark_read(notification_id=1, user_id=8)
    with pytest.raises(NotFoundError):
        svc.mark_read(notification_id=42, user_id=7)

    read = svc.mark_read(notification_id=1, user_id=7)
    assert read.read_at is not None


def test_mark_all_read_counts_only_unread():
    repo = InMemoryNotifications()
    svc = NotificationService(repo)
    for _ in range(3):
        svc.notify(user_id=7, title="x")
    svc.mark_read(notification_id=1, user_id=7)

    assert svc.mark_all_read(user_id=7) == 2
    assert svc.mark_all_read(user_id=7) == 0
