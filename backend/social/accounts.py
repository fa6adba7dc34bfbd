"""
User Directory: registration, lookup, search, follow edges and pinned films.

FOLLOW TOGGLE:
--------------
Delete the edge if it exists, otherwise insert it. The unique constraint on
(follower, followee) means two simultaneous "follow" clicks produce one edge;
the loser gets an IntegrityError and reports the edge as present.

PIN CAPACITY:
-------------
"At most 6 pins" is a check-then-insert, which races. The owner row is
locked (select_for_update) for the duration, so concurrent pins for the same
owner queue up behind each other and the count they see is current.
"""

import logging
from typing import List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q

from .exceptions import CapacityExceeded, DuplicateEntry, NotFound, ValidationError
from .models import Follow, Notification, PinnedFilm, UserProfile
from .notifications import notify

logger = logging.getLogger(__name__)


def get_user(uid: str) -> UserProfile:
    try:
        return UserProfile.objects.get(uid=uid)
    except UserProfile.DoesNotExist:
        raise NotFound('User not found')


def register_user(
    uid: str,
    email: str = '',
    name: str = '',
    country: str = '',
    age: Optional[int] = None,
) -> UserProfile:
    if not uid:
        raise ValidationError('User ID is required')
    if UserProfile.objects.filter(uid=uid).exists():
        raise DuplicateEntry('User already exists')

    try:
        with transaction.atomic():
            user = UserProfile.objects.create(
                uid=uid,
                email=email or '',
                name=name or '',
                country=country or '',
                age=age,
            )
    except IntegrityError:
        raise DuplicateEntry('User already exists')

    logger.info("Registered user %s", uid)
    return user


def search_users(query: str, limit: Optional[int] = None) -> List[UserProfile]:
    """Case-insensitive substring match on name or email."""
    query = (query or '').strip()
    if not query:
        return []
    limit = limit or settings.USER_SEARCH_LIMIT
    return list(
        UserProfile.objects
        .filter(Q(name__icontains=query) | Q(email__icontains=query))
        .order_by('name', 'uid')[:limit]
    )


def toggle_follow(target_uid: str, follower_uid: str) -> bool:
    """
    Follow or unfollow `target_uid` on behalf of `follower_uid`.

    Returns True if the follower now follows the target.
    """
    if not follower_uid:
        raise ValidationError('followerUid is required')
    if target_uid == follower_uid:
        raise ValidationError('You cannot follow yourself')

    target = get_user(target_uid)
    follower = get_user(follower_uid)

    deleted, _ = Follow.objects.filter(follower=follower, followee=target).delete()
    if deleted:
        logger.info("%s unfollowed %s", follower_uid, target_uid)
        return False

    try:
        with transaction.atomic():
            Follow.objects.create(follower=follower, followee=target)
    except IntegrityError:
        # Lost a race with an identical follow request
        return True

    notify(target, follower, Notification.Type.FOLLOW, 'started following you')
    logger.info("%s followed %s", follower_uid, target_uid)
    return True


def is_following(follower_uid: Optional[str], target_uid: str) -> bool:
    if not follower_uid:
        return False
    return Follow.objects.filter(follower_id=follower_uid, followee_id=target_uid).exists()


def list_followers(uid: str) -> List[UserProfile]:
    user = get_user(uid)
    return list(
        UserProfile.objects
        .filter(following_edges__followee=user)
        .order_by('following_edges__created_at')
    )


def list_following(uid: str) -> List[UserProfile]:
    user = get_user(uid)
    return list(
        UserProfile.objects
        .filter(follower_edges__follower=user)
        .order_by('follower_edges__created_at')
    )


def pinned_films(uid: str) -> List[PinnedFilm]:
    return list(PinnedFilm.objects.filter(owner_id=uid))


def pin_film(owner_uid: str, movie: dict) -> PinnedFilm:
    tmdb_id = str(movie.get('tmdbId') or '').strip()
    if not tmdb_id:
        raise ValidationError('tmdbId is required')

    with transaction.atomic():
        try:
            owner = UserProfile.objects.select_for_update().get(uid=owner_uid)
        except UserProfile.DoesNotExist:
            raise NotFound('User not found')

        pins = PinnedFilm.objects.filter(owner=owner)
        if pins.filter(tmdb_id=tmdb_id).exists():
            raise DuplicateEntry('Movie already pinned')
        if pins.count() >= settings.MAX_PINNED_FILMS:
            raise CapacityExceeded(
                f'You can pin at most {settings.MAX_PINNED_FILMS} films'
            )

        pin = PinnedFilm.objects.create(
            owner=owner,
            tmdb_id=tmdb_id,
            title=movie.get('title') or '',
            poster_path=movie.get('posterPath') or '',
        )

    logger.info("%s pinned %s", owner_uid, tmdb_id)
    return pin


def unpin_film(owner_uid: str, tmdb_id: str) -> None:
    owner = get_user(owner_uid)
    deleted, _ = PinnedFilm.objects.filter(owner=owner, tmdb_id=str(tmdb_id)).delete()
    if not deleted:
        raise NotFound('Pinned film not found')
    logger.info("%s unpinned %s", owner_uid, tmdb_id)
