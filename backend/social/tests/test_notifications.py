"""
Tests for the notification dispatcher.

Focus areas:
1. Self-notification suppression for every type
2. Fan-out: one per follower, failures isolated
3. Read state and unread counts
4. Offset pagination, including its known drift under inserts
"""

from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone

from social.accounts import toggle_follow
from social.exceptions import NotFound
from social.models import Notification, UserProfile
from social.notifications import (
    fan_out_to_followers,
    list_notifications,
    mark_all_read,
    mark_read,
    notify,
    unread_count,
)
from social.services import create_text_post


class NotifyTestCase(TestCase):

    def setUp(self):
        self.alice = UserProfile.objects.create(uid='alice', name='Alice')
        self.bob = UserProfile.objects.create(uid='bob', name='Bob')

    def test_self_notifications_are_suppressed_for_every_type(self):
        for notification_type in Notification.Type.values:
            self.assertIsNone(notify(self.alice, self.alice, notification_type, 'x'))

        self.assertFalse(Notification.objects.exists())

    def test_notify_creates_unread_notification(self):
        notification = notify(self.alice, self.bob, Notification.Type.FOLLOW, 'started following you')

        self.assertFalse(notification.is_read)
        self.assertEqual(notification.sender_name, 'Bob')

    def test_sender_name_is_a_snapshot(self):
        notification = notify(self.alice, self.bob, Notification.Type.FOLLOW, 'started following you')

        self.bob.name = 'Robert'
        self.bob.save()

        notification.refresh_from_db()
        self.assertEqual(notification.sender_name, 'Bob')


class FanOutTestCase(TestCase):

    def setUp(self):
        self.alice = UserProfile.objects.create(uid='alice', name='Alice')
        for uid in ['bob', 'carol', 'dave']:
            UserProfile.objects.create(uid=uid, name=uid.title())
            toggle_follow('alice', uid)
        # Drop the follow notifications sent to alice
        Notification.objects.all().delete()

    def test_one_notification_per_follower(self):
        created = fan_out_to_followers(self.alice, Notification.Type.POST, 'posted: "hi"')

        self.assertEqual(created, 3)
        self.assertEqual(
            sorted(Notification.objects.values_list('recipient_id', flat=True)),
            ['bob', 'carol', 'dave'],
        )

    def test_no_followers(self):
        loner = UserProfile.objects.create(uid='loner')
        self.assertEqual(fan_out_to_followers(loner, Notification.Type.POST, 'x'), 0)

    def test_failure_for_one_follower_does_not_affect_others(self):
        real_create = Notification.objects.create

        def flaky_create(**kwargs):
            if kwargs['recipient'].uid == 'carol':
                raise DatabaseError('disk full')
            return real_create(**kwargs)

        with patch.object(Notification.objects, 'create', side_effect=flaky_create):
            with self.assertLogs('social.notifications', level='ERROR'):
                created = fan_out_to_followers(self.alice, Notification.Type.POST, 'posted: "hi"')

        self.assertEqual(created, 2)
        self.assertEqual(
            sorted(Notification.objects.values_list('recipient_id', flat=True)),
            ['bob', 'dave'],
        )


class ReadStateTestCase(TestCase):

    def setUp(self):
        self.alice = UserProfile.objects.create(uid='alice', name='Alice')
        self.bob = UserProfile.objects.create(uid='bob', name='Bob')

    def test_post_then_mark_all_read(self):
        """A follower sees one unread post notification until marking all read."""
        toggle_follow('alice', 'bob')

        create_text_post('alice', 'hello')

        self.assertEqual(unread_count('bob'), 1)
        self.assertEqual(mark_all_read('bob'), 1)
        self.assertEqual(unread_count('bob'), 0)

    def test_mark_read(self):
        notification = notify(self.alice, self.bob, Notification.Type.LIKE, 'liked your post')

        mark_read(notification.id)

        self.assertEqual(unread_count('alice'), 0)
        notification.refresh_from_db()
        self.assertTrue(notification.is_read)

    def test_mark_read_is_idempotent(self):
        notification = notify(self.alice, self.bob, Notification.Type.LIKE, 'liked your post')

        mark_read(notification.id)
        self.assertTrue(mark_read(notification.id).is_read)

    def test_mark_read_unknown(self):
        with self.assertRaises(NotFound):
            mark_read(9999)

    def test_mark_all_read_only_touches_recipient(self):
        notify(self.alice, self.bob, Notification.Type.LIKE, 'liked your post')
        notify(self.bob, self.alice, Notification.Type.LIKE, 'liked your post')

        mark_all_read('alice')

        self.assertEqual(unread_count('alice'), 0)
        self.assertEqual(unread_count('bob'), 1)


class PaginationTestCase(TestCase):

    def setUp(self):
        self.recipient = UserProfile.objects.create(uid='alice', name='Alice')
        self.sender = UserProfile.objects.create(uid='bob', name='Bob')
        self.now = timezone.now()

    def _create(self, count, start_minutes_ago=100):
        created = []
        for i in range(count):
            created.append(Notification.objects.create(
                recipient=self.recipient,
                sender=self.sender,
                sender_name='Bob',
                type=Notification.Type.LIKE,
                message=f'n{i}',
                created_at=self.now - timedelta(minutes=start_minutes_ago - i),
            ))
        return created

    def test_newest_first(self):
        self._create(3)
        self.assertEqual([n.message for n in list_notifications('alice')], ['n2', 'n1', 'n0'])

    def test_page_and_limit(self):
        self._create(5)

        page2 = list_notifications('alice', page=2, limit=2)

        self.assertEqual([n.message for n in page2], ['n2', 'n1'])

    def test_default_limit(self):
        self._create(25)
        self.assertEqual(len(list_notifications('alice')), 20)

    @override_settings(NOTIFICATION_MAX_PAGE_SIZE=5)
    def test_limit_is_capped(self):
        self._create(8)
        self.assertEqual(len(list_notifications('alice', limit=50)), 5)

    def test_invalid_values_fall_back_to_defaults(self):
        self._create(3)

        self.assertEqual(len(list_notifications('alice', page='abc', limit='-4')), 3)
        self.assertEqual(len(list_notifications('alice', page=0, limit=None)), 3)

    def test_page_past_the_end_is_empty(self):
        self._create(3)
        self.assertEqual(list_notifications('alice', page=5, limit=2), [])

    def test_insert_between_pages_repeats_a_row(self):
        """
        Offset pagination drifts: a notification arriving between page
        fetches pushes the last row of page 1 onto page 2.
        """
        self._create(4)

        page1 = list_notifications('alice', page=1, limit=2)
        self._create(1, start_minutes_ago=0)
        page2 = list_notifications('alice', page=2, limit=2)

        overlap = {n.id for n in page1} & {n.id for n in page2}
        self.assertEqual(len(overlap), 1)
        self.assertEqual([n.message for n in page1], ['n3', 'n2'])
        self.assertEqual([n.message for n in page2], ['n2', 'n1'])
