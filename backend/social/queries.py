"""
Read-side Query Strategies
==========================

Feed and profile reads, kept free of N+1 queries.

THE N+1 PROBLEM HERE:
---------------------
Naive approach for a feed of 50 posts:
    for post in Post.objects.all():          # 1 query
        post.likes.all()                     # 50 queries
        for comment in post.comments.all():  # 50 queries
            comment.author.display_name      # 1 per comment

OUR APPROACH:
-------------
1. Posts with author (JOIN)                  -> 1 query
2. prefetch likes for all posts              -> 1 query
3. prefetch comments + authors for all posts -> 1 query
Total: 3 queries regardless of feed size.

CATALOG ENRICHMENT:
-------------------
Each embedded movie is refreshed from the catalog before serialization.
Results are memoized by catalog id for the duration of one read, and any
catalog failure leaves the stored snapshot in place. The enriched movies are
handed to the serializer through its context as {post_id: movie}.
"""

from typing import Iterable, List, Optional

from django.db.models import Prefetch

from .accounts import get_user, is_following, pinned_films
from .catalog import MovieCatalog, enrich_movie, get_catalog
from .collection import counts_for
from .exceptions import NotFound
from .models import Comment, Like, Post


def _feed_queryset():
    return (
        Post.objects
        .select_related('author')
        .prefetch_related(
            Prefetch('likes', queryset=Like.objects.order_by('created_at', 'id')),
            Prefetch(
                'comments',
                queryset=Comment.objects.select_related('author').order_by('-created_at', '-id'),
            ),
        )
        .order_by('-created_at', '-id')
    )


def get_feed_posts() -> List[Post]:
    """Every post, newest first, with likes and comments prefetched."""
    return list(_feed_queryset())


def get_posts_by_author(uid: str) -> List[Post]:
    return list(_feed_queryset().filter(author_id=uid))


def get_post_detail(post_id: int) -> Post:
    post = _feed_queryset().filter(id=post_id).first()
    if not post:
        raise NotFound('Post not found')
    return post


def enrich_post_movies(
    posts: Iterable[Post],
    catalog: Optional[MovieCatalog] = None,
) -> dict:
    """
    Live-refresh the movie embedded in each post.

    Returns {post.id: movie dict}; posts without a movie are omitted.
    """
    catalog = catalog or get_catalog()
    cache = {}
    return {
        post.id: enrich_movie(post.movie, catalog, cache)
        for post in posts
        if post.movie
    }


def get_profile(uid: str, viewer_uid: Optional[str] = None) -> dict:
    """
    Aggregate profile: user, follow counts, pins, posts, viewer state.

    Posts are returned with their stored movie snapshots; the profile page
    does not pay for catalog lookups.
    """
    user = get_user(uid)
    counts = counts_for(uid)
    return {
        'user': user,
        'followersCount': user.follower_edges.count(),
        'followingCount': user.following_edges.count(),
        'pinnedFilms': pinned_films(uid),
        'posts': get_posts_by_author(uid),
        'followedByViewer': is_following(viewer_uid, uid),
        'watchlistCount': counts['watchlistCount'],
        'watchedRecentCount': counts['watchedRecentCount'],
    }
