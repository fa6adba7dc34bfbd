"""
Movie Collection Store
======================

Per-user watchlist / watched entries.

UNIQUENESS:
-----------
At most one entry per (owner, tmdb_id, status). add_entry() checks first so
the common case gets a clean "Movie already in this list" error; the unique
constraint catches the concurrent case and is reported the same way.

STATUS TRANSITIONS:
-------------------
There is exactly one transition path: the status column is mutated in place.
The destination triple must be free, so moving a watchlist entry to watched
fails with DuplicateEntry when the movie is already in the watched list.
A successful transition also records a movie-activity post, just like adding
the movie to that list would have.

"WATCHED RECENTLY":
-------------------
counts_for() counts watched entries whose updated_at falls in the last
WATCHED_RECENT_DAYS days. updated_at, not created_at: an entry created long
ago and marked watched yesterday counts; one whose last update is older than
the window does not, even if it was marked watched inside it.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from .catalog import MovieCatalog, enrich_movie, get_catalog
from .exceptions import DuplicateEntry, NotFound, ValidationError
from .models import CollectionEntry, MovieStatus, UserProfile

logger = logging.getLogger(__name__)


def _validate_status(status: str) -> str:
    if status not in MovieStatus.values:
        raise ValidationError(
            f"status must be one of: {', '.join(MovieStatus.values)}"
        )
    return status


def add_entry(owner_uid: str, movie: dict, status: str) -> CollectionEntry:
    """Add a movie to one of the owner's lists."""
    tmdb_id = str(movie.get('tmdbId') or '').strip()
    if not tmdb_id or not owner_uid or not status:
        raise ValidationError('Missing required fields')
    _validate_status(status)

    try:
        owner = UserProfile.objects.get(uid=owner_uid)
    except UserProfile.DoesNotExist:
        raise NotFound('User not found')

    if CollectionEntry.objects.filter(owner=owner, tmdb_id=tmdb_id, status=status).exists():
        raise DuplicateEntry('Movie already in this list')

    try:
        with transaction.atomic():
            entry = CollectionEntry.objects.create(
                owner=owner,
                tmdb_id=tmdb_id,
                title=movie.get('title') or '',
                poster_path=movie.get('posterPath') or '',
                release_date=movie.get('releaseDate') or '',
                overview=movie.get('overview') or '',
                status=status,
            )
    except IntegrityError:
        raise DuplicateEntry('Movie already in this list')

    logger.info("%s added %s to %s", owner_uid, tmdb_id, status)
    return entry


def get_entry(entry_id: int) -> CollectionEntry:
    try:
        return CollectionEntry.objects.select_related('owner').get(id=entry_id)
    except CollectionEntry.DoesNotExist:
        raise NotFound('Movie not found')


def list_by_owner_and_status(
    owner_uid: str,
    status: str,
    catalog: Optional[MovieCatalog] = None,
) -> List[dict]:
    """
    Entries for one list, newest first, each with a live-enriched MovieRef.

    Returns [{'entry': CollectionEntry, 'movie': dict}, ...]. The movie dict
    falls back to the stored snapshot when the catalog is unavailable.
    """
    if not owner_uid or not status:
        raise ValidationError('Missing parameters')
    _validate_status(status)

    catalog = catalog or get_catalog()
    cache = {}
    entries = CollectionEntry.objects.filter(owner_id=owner_uid, status=status)
    return [
        {'entry': entry, 'movie': enrich_movie(entry.as_movie_ref(), catalog, cache)}
        for entry in entries
    ]


def transition_status(entry_id: int, new_status: str) -> CollectionEntry:
    """Move an entry to another list in place."""
    from .services import create_movie_activity_post

    _validate_status(new_status)
    entry = get_entry(entry_id)
    if entry.status == new_status:
        return entry

    with transaction.atomic():
        conflict = (
            CollectionEntry.objects
            .filter(owner_id=entry.owner_id, tmdb_id=entry.tmdb_id, status=new_status)
            .exclude(id=entry.id)
            .exists()
        )
        if conflict:
            raise DuplicateEntry('Movie already in this list')

        entry.status = new_status
        try:
            with transaction.atomic():
                entry.save(update_fields=['status', 'updated_at'])
        except IntegrityError:
            raise DuplicateEntry('Movie already in this list')

        create_movie_activity_post(entry.owner, entry.as_movie_ref(), new_status)

    logger.info("Moved %s for %s to %s", entry.tmdb_id, entry.owner_id, new_status)
    return entry


def remove_entry(entry_id: int) -> None:
    deleted, _ = CollectionEntry.objects.filter(id=entry_id).delete()
    if not deleted:
        raise NotFound('Movie not found')


def counts_for(owner_uid: str) -> dict:
    """{'watchlistCount': ..., 'watchedRecentCount': ...} in a single query."""
    cutoff = timezone.now() - timedelta(days=settings.WATCHED_RECENT_DAYS)
    counts = CollectionEntry.objects.filter(owner_id=owner_uid).aggregate(
        watchlist=Count('id', filter=Q(status=MovieStatus.WATCHLIST)),
        watched_recent=Count(
            'id',
            filter=Q(status=MovieStatus.WATCHED, updated_at__gte=cutoff),
        ),
    )
    return {
        'watchlistCount': counts['watchlist'],
        'watchedRecentCount': counts['watched_recent'],
    }
