"""
Django Signals for follower fan-out.

A freshly created post notifies every follower of its author:
- kind=text           -> type "post",  'posted: "<preview>"' (+ ' about <title>')
- kind=movie_activity -> type "movie_activity", 'watched "<title>"' or
                         'added to watchlist "<title>"'

Shares (posts with shared_from set) do not fan out; the original author gets
a "share" notification from services.share_post instead.

IMPORTANT: Signals do NOT fire on bulk_create(). Anything that creates posts
in bulk (fixtures, data migrations) skips notifications, which is what we
want for backfills.
"""

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import MovieStatus, Notification, Post
from .notifications import fan_out_to_followers, preview


def _activity_message(post: Post) -> str:
    title = (post.movie or {}).get('title', '')
    action = 'added to watchlist' if post.activity_action == MovieStatus.WATCHLIST else 'watched'
    return f'{action} "{title}"'


def _post_message(post: Post) -> str:
    about = f" about {post.movie['title']}" if post.movie and post.movie.get('title') else ''
    return f'posted: "{preview(post.text)}"{about}'


@receiver(post_save, sender=Post)
def notify_followers_of_new_post(sender, instance, created, raw=False, **kwargs):
    if not created or raw or instance.shared_from_id:
        return

    if instance.is_movie_activity:
        fan_out_to_followers(
            instance.author,
            Notification.Type.MOVIE_ACTIVITY,
            _activity_message(instance),
            post=instance,
            movie_title=(instance.movie or {}).get('title', ''),
            movie_action=instance.activity_action,
        )
    else:
        fan_out_to_followers(
            instance.author,
            Notification.Type.POST,
            _post_message(instance),
            post=instance,
        )
