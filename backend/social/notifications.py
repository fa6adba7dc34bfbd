"""
Notification Dispatcher
=======================

Every notification is created here, either for a single recipient (like,
comment, share, follow) or once per follower of the acting user (post,
movie_activity).

SELF-ACTIONS:
-------------
notify() is a no-op when recipient == sender. Every caller relies on this,
so liking your own post or commenting on it never notifies you.

FAN-OUT:
--------
fan_out_to_followers() loops over the actor's followers inside the request.
Each notify() runs in its own savepoint:
- A failure for one follower is logged and skipped
- It never rolls back notifications already created for other followers
- It is not retried

PAGINATION:
-----------
list_notifications() is offset based (skip/limit), which is what the client
asks for (?page=&limit=). Inserting a notification between two page fetches
shifts every later row by one, so a row can show up on two pages. The client
tolerates duplicates; cursor pagination would remove the drift.
"""

import logging
from typing import List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import NotFound
from .models import Follow, Notification, Post, UserProfile

logger = logging.getLogger(__name__)


def preview(text: str, length: int = 50) -> str:
    """Shorten text for a notification message."""
    return text[:length] + '...' if len(text) > length else text


def notify(
    recipient: UserProfile,
    sender: UserProfile,
    type: str,
    message: str,
    post: Optional[Post] = None,
    movie_title: Optional[str] = None,
    movie_action: Optional[str] = None,
) -> Optional[Notification]:
    """
    Create one unread notification, unless the sender is notifying themself.

    The sender's display name is captured now and never refreshed.
    """
    if recipient.pk == sender.pk:
        return None

    return Notification.objects.create(
        recipient=recipient,
        sender=sender,
        sender_name=sender.display_name,
        type=type,
        message=message,
        related_post=post,
        movie_title=movie_title or '',
        movie_action=movie_action or '',
        created_at=timezone.now(),
    )


def fan_out_to_followers(actor: UserProfile, type: str, message: str, **related) -> int:
    """
    Notify every follower of `actor`. Returns how many notifications were created.
    """
    follower_ids = list(
        Follow.objects
        .filter(followee=actor)
        .values_list('follower_id', flat=True)
    )
    followers = UserProfile.objects.filter(uid__in=follower_ids)

    created = 0
    for follower in followers:
        try:
            with transaction.atomic():
                if notify(follower, actor, type, message, **related):
                    created += 1
        except DatabaseError:
            logger.exception(
                "Failed to notify %s about %s from %s", follower.uid, type, actor.uid
            )

    logger.info("Fanned out %s notification to %s of %s followers of %s",
                type, created, len(follower_ids), actor.uid)
    return created


def mark_read(notification_id: int) -> Notification:
    try:
        notification = Notification.objects.get(id=notification_id)
    except Notification.DoesNotExist:
        raise NotFound('Notification not found')

    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])
    return notification


def mark_all_read(recipient_uid: str) -> int:
    """Mark every unread notification of a recipient as read. Returns the count."""
    return (
        Notification.objects
        .filter(recipient_id=recipient_uid, is_read=False)
        .update(is_read=True)
    )


def unread_count(recipient_uid: str) -> int:
    return Notification.objects.filter(recipient_id=recipient_uid, is_read=False).count()


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def list_notifications(recipient_uid: str, page=1, limit=None) -> List[Notification]:
    """
    One page of a recipient's notifications, newest first.

    page and limit may come straight from the query string; anything that
    is not a positive integer falls back to the default.
    """
    page = _positive_int(page, 1)
    limit = min(
        _positive_int(limit, settings.NOTIFICATION_PAGE_SIZE),
        settings.NOTIFICATION_MAX_PAGE_SIZE,
    )
    skip = (page - 1) * limit

    return list(
        Notification.objects
        .filter(recipient_id=recipient_uid)
        .order_by('-created_at', '-id')[skip:skip + limit]
    )
