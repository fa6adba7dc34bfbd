"""
Feed Services
=============

Write-side operations on the feed: posts, likes, comments, shares, edits.

CONCURRENCY STRATEGY:
---------------------
Problem: two users liking (or commenting on) the same post at the same time.
Naive: load post -> append to likes array -> save post -> LOST UPDATE!

Likes:
    Toggle is "DELETE the (post, user) row; if nothing was deleted, INSERT
    it". The unique constraint on (post, user) rejects a concurrent duplicate
    INSERT with an IntegrityError, which we treat as "already liked".
    Other users' likes are different rows and are never touched.

Comments:
    A single INSERT. Order is newest first by created_at, so there is no list
    to re-sort and rewrite.

NOTIFICATIONS:
--------------
- like (absent -> present only), comment, share: the post's author
- post, movie_activity: every follower of the author, via the post_save
  signal in signals.py
Self-actions are suppressed inside notify().

NOT RETRY-SAFE:
---------------
toggle_like() flips state. A client that retries after a successful toggle
flips it back. Callers must not retry it blindly.
"""

import copy
import logging
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from .accounts import get_user
from .collection import add_entry
from .exceptions import NotFound, PermissionDenied, ValidationError
from .models import CollectionEntry, Comment, Like, Notification, Post, UserProfile
from .notifications import notify, preview

logger = logging.getLogger(__name__)


def get_post(post_id: int) -> Post:
    try:
        return Post.objects.select_related('author').get(id=post_id)
    except Post.DoesNotExist:
        raise NotFound('Post not found')


def _movie_ref(movie: Optional[dict]) -> Optional[dict]:
    """Normalize an incoming movie payload into a MovieRef snapshot."""
    if not movie:
        return None
    return {
        'tmdbId': str(movie.get('tmdbId') or ''),
        'title': movie.get('title') or '',
        'posterPath': movie.get('posterPath') or '',
        'releaseDate': movie.get('releaseDate') or '',
        'overview': movie.get('overview') or '',
    }


def create_text_post(author_uid: str, text: str, movie: Optional[dict] = None) -> Post:
    """
    Publish a text post, optionally about a movie.

    Followers are notified by the post_save signal.
    """
    text = (text or '').strip()
    if not text:
        raise ValidationError('Post text cannot be empty')

    author = get_user(author_uid)
    post = Post.objects.create(
        author=author,
        author_name=author.display_name,
        kind=Post.Kind.TEXT,
        text=text,
        movie=_movie_ref(movie),
        created_at=timezone.now(),
    )
    logger.info("%s created post %s", author_uid, post.id)
    return post


def create_movie_activity_post(author: UserProfile, movie: dict, action: str) -> Post:
    """
    Record that `author` added a movie to a list.

    Only called as a side effect of a collection change, never directly from
    the composer.
    """
    post = Post.objects.create(
        author=author,
        author_name=author.display_name,
        kind=Post.Kind.MOVIE_ACTIVITY,
        movie=_movie_ref(movie),
        activity_action=action,
        created_at=timezone.now(),
    )
    logger.info("%s %s %s (post %s)", author.uid, action, post.movie.get('tmdbId'), post.id)
    return post


def record_movie_activity(owner_uid: str, movie: dict, status: str) -> CollectionEntry:
    """Add a movie to a list and publish the matching activity post."""
    with transaction.atomic():
        entry = add_entry(owner_uid, movie, status)
        create_movie_activity_post(entry.owner, movie, status)
    return entry


def liked_by(post_id: int) -> List[str]:
    return list(
        Like.objects
        .filter(post_id=post_id)
        .order_by('created_at', 'id')
        .values_list('user_id', flat=True)
    )


def toggle_like(post_id: int, actor_uid: str) -> List[str]:
    """
    Flip the actor's like on a post and return the resulting list of likers.

    Two consecutive toggles by the same actor restore the original set.
    """
    post = get_post(post_id)
    actor = get_user(actor_uid)

    created = False
    with transaction.atomic():
        deleted, _ = Like.objects.filter(post=post, user=actor).delete()
        if not deleted:
            try:
                with transaction.atomic():
                    Like.objects.create(post=post, user=actor, created_at=timezone.now())
                created = True
            except IntegrityError:
                # A concurrent request from the same actor liked it first
                created = False

    if created:
        notify(post.author, actor, Notification.Type.LIKE, 'liked your post', post=post)

    return liked_by(post.id)


def comments_for(post_id: int) -> List[Comment]:
    return list(
        Comment.objects
        .filter(post_id=post_id)
        .select_related('author')
        .order_by('-created_at', '-id')
    )


def add_comment(post_id: int, actor_uid: str, text: str) -> List[Comment]:
    """Append a comment and return the post's comments, newest first."""
    text = (text or '').strip()
    if not text:
        raise ValidationError('Comment cannot be empty')

    post = get_post(post_id)
    actor = get_user(actor_uid)

    Comment.objects.create(
        post=post,
        author=actor,
        author_name=actor.display_name,
        text=text,
        created_at=timezone.now(),
    )
    notify(
        post.author,
        actor,
        Notification.Type.COMMENT,
        f'commented: "{preview(text)}"',
        post=post,
    )
    return comments_for(post.id)


def share_post(post_id: int, actor_uid: str) -> Post:
    """
    Re-publish a post under the actor's name.

    The copy owns its own movie snapshot; later edits to the original do not
    reach it. Likes and comments are not copied.
    """
    original = get_post(post_id)
    actor = get_user(actor_uid)

    shared = Post.objects.create(
        author=actor,
        author_name=actor.display_name,
        kind=original.kind,
        text=original.text,
        movie=copy.deepcopy(original.movie),
        activity_action=original.activity_action,
        shared_from=original,
        created_at=timezone.now(),
    )
    notify(
        original.author,
        actor,
        Notification.Type.SHARE,
        'shared your post',
        post=original,
    )
    logger.info("%s shared post %s as %s", actor_uid, original.id, shared.id)
    return shared


def _authored_post(post_id: int, actor_uid: str) -> Post:
    post = get_post(post_id)
    if not actor_uid:
        raise ValidationError('userId is required')
    if post.author_id != actor_uid:
        raise PermissionDenied('Only the author can change this post')
    return post


def edit_post_text(post_id: int, actor_uid: str, text: str) -> Post:
    post = _authored_post(post_id, actor_uid)
    if post.kind != Post.Kind.TEXT:
        raise ValidationError('Only text posts can be edited')

    text = (text or '').strip()
    if not text:
        raise ValidationError('Post text cannot be empty')

    post.text = text
    post.save(update_fields=['text', 'updated_at'])
    return post


def delete_post(post_id: int, actor_uid: str) -> None:
    post = _authored_post(post_id, actor_uid)
    post.delete()
    logger.info("%s deleted post %s", actor_uid, post_id)
