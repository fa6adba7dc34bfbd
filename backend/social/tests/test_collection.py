"""
Tests for the movie collection store.

Focus areas:
1. (owner, movie, status) uniqueness
2. Status transitions (in place, destination must be free)
3. The "watched in the last 30 days" counter
"""

from datetime import timedelta
from unittest.mock import Mock

from django.test import TestCase, override_settings
from django.utils import timezone

from social.collection import (
    add_entry,
    counts_for,
    list_by_owner_and_status,
    remove_entry,
    transition_status,
)
from social.exceptions import DuplicateEntry, NotFound, UpstreamUnavailable, ValidationError
from social.models import CollectionEntry, MovieStatus, Post, UserProfile


@override_settings(TMDB_API_KEY='')
class CollectionEntryTestCase(TestCase):

    def setUp(self):
        self.user = UserProfile.objects.create(uid='alice', name='Alice')
        self.movie = {'tmdbId': '42', 'title': 'X'}

    def test_add_list_and_count_for_new_user(self):
        """A first watchlist entry shows up in the list and the counts."""
        entry = add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        self.assertEqual(entry.tmdb_id, '42')

        rows = list_by_owner_and_status('alice', MovieStatus.WATCHLIST)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['entry'].id, entry.id)
        # No catalog key in tests: the stored snapshot is used
        self.assertEqual(rows[0]['movie']['title'], 'X')

        self.assertEqual(counts_for('alice'), {'watchlistCount': 1, 'watchedRecentCount': 0})

    def test_same_movie_twice_in_one_list_is_rejected(self):
        add_entry('alice', self.movie, MovieStatus.WATCHLIST)

        with self.assertRaises(DuplicateEntry):
            add_entry('alice', self.movie, MovieStatus.WATCHLIST)

        self.assertEqual(CollectionEntry.objects.filter(owner=self.user).count(), 1)

    def test_same_movie_in_both_lists_is_allowed(self):
        add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        add_entry('alice', self.movie, MovieStatus.WATCHED)

        self.assertEqual(CollectionEntry.objects.filter(owner=self.user).count(), 2)

    def test_numeric_tmdb_id_is_stored_as_string(self):
        add_entry('alice', {'tmdbId': 42, 'title': 'X'}, MovieStatus.WATCHLIST)

        with self.assertRaises(DuplicateEntry):
            add_entry('alice', {'tmdbId': '42'}, MovieStatus.WATCHLIST)

    def test_missing_fields(self):
        with self.assertRaises(ValidationError):
            add_entry('alice', {'title': 'No id'}, MovieStatus.WATCHLIST)
        with self.assertRaises(ValidationError):
            add_entry('', self.movie, MovieStatus.WATCHLIST)

    def test_unknown_status_is_rejected(self):
        with self.assertRaises(ValidationError):
            add_entry('alice', self.movie, 'favourites')

    def test_unknown_owner(self):
        with self.assertRaises(NotFound):
            add_entry('nobody', self.movie, MovieStatus.WATCHLIST)

    def test_list_requires_owner_and_status(self):
        with self.assertRaises(ValidationError):
            list_by_owner_and_status('', MovieStatus.WATCHLIST)
        with self.assertRaises(ValidationError):
            list_by_owner_and_status('alice', '')

    def test_list_uses_live_catalog_values(self):
        add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        catalog = Mock()
        catalog.details.return_value = {'title': 'X (Remastered)', 'poster_path': '/x.jpg'}

        rows = list_by_owner_and_status('alice', MovieStatus.WATCHLIST, catalog=catalog)

        self.assertEqual(rows[0]['movie']['title'], 'X (Remastered)')
        self.assertEqual(rows[0]['movie']['posterPath'], '/x.jpg')
        catalog.details.assert_called_once_with('42')

    def test_list_falls_back_to_snapshot_when_catalog_fails(self):
        add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        catalog = Mock()
        catalog.details.side_effect = UpstreamUnavailable()

        rows = list_by_owner_and_status('alice', MovieStatus.WATCHLIST, catalog=catalog)

        self.assertEqual(rows[0]['movie']['title'], 'X')

    def test_list_only_returns_the_requested_status(self):
        add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        add_entry('alice', {'tmdbId': '7', 'title': 'Y'}, MovieStatus.WATCHED)

        rows = list_by_owner_and_status('alice', MovieStatus.WATCHED)

        self.assertEqual([row['entry'].tmdb_id for row in rows], ['7'])

    def test_remove_entry(self):
        entry = add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        remove_entry(entry.id)

        self.assertFalse(CollectionEntry.objects.filter(id=entry.id).exists())
        with self.assertRaises(NotFound):
            remove_entry(entry.id)


class WatchedRecentlyTestCase(TestCase):
    """
    watchedRecentCount counts watched entries updated in the last 30 days.
    """

    def setUp(self):
        self.user = UserProfile.objects.create(uid='alice', name='Alice')

    def test_old_watched_entries_are_not_counted(self):
        old = add_entry('alice', {'tmdbId': '1'}, MovieStatus.WATCHED)
        add_entry('alice', {'tmdbId': '2'}, MovieStatus.WATCHED)

        # updated_at is auto_now, so backdate with a queryset update
        CollectionEntry.objects.filter(id=old.id).update(
            updated_at=timezone.now() - timedelta(days=31)
        )

        self.assertEqual(counts_for('alice')['watchedRecentCount'], 1)

    def test_watchlist_count_ignores_age(self):
        entry = add_entry('alice', {'tmdbId': '1'}, MovieStatus.WATCHLIST)
        CollectionEntry.objects.filter(id=entry.id).update(
            updated_at=timezone.now() - timedelta(days=400)
        )

        self.assertEqual(counts_for('alice')['watchlistCount'], 1)

    def test_unknown_user_has_zero_counts(self):
        self.assertEqual(counts_for('nobody'), {'watchlistCount': 0, 'watchedRecentCount': 0})


class StatusTransitionTestCase(TestCase):
    """
    There is a single transition path: the entry is moved in place and the
    destination list must not already hold the movie.
    """

    def setUp(self):
        self.user = UserProfile.objects.create(uid='alice', name='Alice')
        self.movie = {'tmdbId': '42', 'title': 'X'}

    def test_transition_moves_entry_in_place(self):
        entry = add_entry('alice', self.movie, MovieStatus.WATCHLIST)

        moved = transition_status(entry.id, MovieStatus.WATCHED)

        self.assertEqual(moved.id, entry.id)
        self.assertEqual(CollectionEntry.objects.get(id=entry.id).status, MovieStatus.WATCHED)
        self.assertEqual(CollectionEntry.objects.filter(owner=self.user).count(), 1)

    def test_transition_publishes_activity_post(self):
        entry = add_entry('alice', self.movie, MovieStatus.WATCHLIST)

        transition_status(entry.id, MovieStatus.WATCHED)

        post = Post.objects.get(author=self.user)
        self.assertEqual(post.kind, Post.Kind.MOVIE_ACTIVITY)
        self.assertEqual(post.activity_action, MovieStatus.WATCHED)
        self.assertEqual(post.movie['tmdbId'], '42')

    def test_transition_into_occupied_list_is_rejected(self):
        """Destination uniqueness holds across transitions too."""
        entry = add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        add_entry('alice', self.movie, MovieStatus.WATCHED)

        with self.assertRaises(DuplicateEntry):
            transition_status(entry.id, MovieStatus.WATCHED)

        self.assertEqual(CollectionEntry.objects.get(id=entry.id).status, MovieStatus.WATCHLIST)
        self.assertFalse(Post.objects.exists())

    def test_transition_to_current_status_is_a_no_op(self):
        entry = add_entry('alice', self.movie, MovieStatus.WATCHLIST)

        transition_status(entry.id, MovieStatus.WATCHLIST)

        self.assertFalse(Post.objects.exists())

    def test_transition_of_missing_entry(self):
        with self.assertRaises(NotFound):
            transition_status(9999, MovieStatus.WATCHED)

    def test_transition_counts_as_recently_watched(self):
        entry = add_entry('alice', self.movie, MovieStatus.WATCHLIST)
        CollectionEntry.objects.filter(id=entry.id).update(
            created_at=timezone.now() - timedelta(days=90),
            updated_at=timezone.now() - timedelta(days=90),
        )

        transition_status(entry.id, MovieStatus.WATCHED)

        self.assertEqual(counts_for('alice'), {'watchlistCount': 0, 'watchedRecentCount': 1})
