"""
Data Models for Watchscape
==========================

Design Philosophy:
------------------
1. Follow edges are rows, not two mirrored arrays on the user
   - user.followers and user.following are both read from the same Follow row
   - Symmetry (b in A.following <=> A in b.followers) holds by construction
   - Unique + check constraints reject duplicate edges and self-follows

2. Likes and comments are child rows of Post, not embedded arrays
   - A like is an INSERT (or DELETE) on a uniquely constrained row
   - A comment is a single INSERT
   - Neither path reads-modifies-writes the post, so concurrent likers and
     commenters cannot overwrite each other

3. Movie data is a denormalized snapshot (MovieRef)
   - Collection entries and pins keep flat columns
   - Posts keep the MovieRef as JSON so shares can deep-copy it
   - Reads refresh it from the catalog when they can (see catalog.py)

4. Display names are snapshots
   - Post.author_name, Comment.author_name, Notification.sender_name are
     captured at write time and never rewritten on rename

Indexes Strategy:
-----------------
- collection: (owner, status) for list views, unique (owner, tmdb_id, status)
- comment: (post, -created_at) for newest-first reads
- notification: (recipient, -created_at) for paging, (recipient, is_read)
  for unread counts
"""

from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class MovieStatus(models.TextChoices):
    WATCHLIST = 'watchlist', 'Watchlist'
    WATCHED = 'watched', 'Watched'


class UserProfile(models.Model):
    """
    A registered user.

    The uid is issued by the identity provider (Firebase) and is opaque to us.
    """
    uid = models.CharField(max_length=128, primary_key=True)
    name = models.CharField(max_length=150, blank=True)
    email = models.EmailField(blank=True, db_index=True)
    country = models.CharField(max_length=100, blank=True)
    age = models.PositiveSmallIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['name', 'uid']

    def __str__(self):
        return self.display_name

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.uid


class Follow(models.Model):
    """
    Directed follow edge: follower -> followee.

    user.following_edges -> edges this user created (outbound)
    user.follower_edges  -> edges pointing at this user (inbound)
    """
    follower = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='following_edges',
    )
    followee = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='follower_edges',
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['follower', 'followee'],
                name='unique_follow_edge'
            ),
            models.CheckConstraint(
                condition=~Q(follower=F('followee')),
                name='follow_not_self'
            ),
        ]
        indexes = [
            models.Index(fields=['followee', 'created_at']),
        ]

    def __str__(self):
        return f"{self.follower_id} -> {self.followee_id}"


class CollectionEntry(models.Model):
    """
    One movie in one of a user's lists (watchlist or watched).

    The same movie may sit in both lists at once, but never twice in the same
    list: the (owner, tmdb_id, status) triple is unique.
    """
    owner = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='collection',
    )
    tmdb_id = models.CharField(max_length=32)
    title = models.CharField(max_length=300, blank=True)
    poster_path = models.CharField(max_length=300, blank=True)
    release_date = models.CharField(max_length=32, blank=True)
    overview = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=MovieStatus.choices)
    created_at = models.DateTimeField(default=timezone.now)
    # Drives the "watched in the last 30 days" counter
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['owner', 'tmdb_id', 'status'],
                name='unique_collection_entry'
            ),
        ]
        indexes = [
            models.Index(fields=['owner', 'status']),
        ]

    def __str__(self):
        return f"{self.title or self.tmdb_id} ({self.status}) for {self.owner_id}"

    def as_movie_ref(self) -> dict:
        return {
            'tmdbId': self.tmdb_id,
            'title': self.title,
            'posterPath': self.poster_path,
            'releaseDate': self.release_date,
            'overview': self.overview,
        }


class PinnedFilm(models.Model):
    """A film showcased on a profile. At most MAX_PINNED_FILMS per owner."""
    owner = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='pinned_films',
    )
    tmdb_id = models.CharField(max_length=32)
    title = models.CharField(max_length=300, blank=True)
    poster_path = models.CharField(max_length=300, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['owner', 'tmdb_id'],
                name='unique_pinned_film'
            ),
        ]

    def __str__(self):
        return f"{self.title or self.tmdb_id} pinned by {self.owner_id}"


class Post(models.Model):
    """
    A feed post.

    kind=text           -> text is required, movie is an optional MovieRef
    kind=movie_activity -> activity_action is set, movie is the MovieRef the
                           action applies to, text is blank
    """

    class Kind(models.TextChoices):
        TEXT = 'text', 'Text'
        MOVIE_ACTIVITY = 'movie_activity', 'Movie activity'

    author = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='posts',
    )
    author_name = models.CharField(max_length=254)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.TEXT)
    text = models.TextField(blank=True)
    movie = models.JSONField(null=True, blank=True)
    activity_action = models.CharField(
        max_length=16,
        choices=MovieStatus.choices,
        blank=True,
    )
    shared_from = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='shares',
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['author', '-created_at']),
        ]

    def __str__(self):
        return f"{self.kind} post {self.pk} by {self.author_name}"

    @property
    def is_movie_activity(self) -> bool:
        return self.kind == self.Kind.MOVIE_ACTIVITY


class Like(models.Model):
    """
    A user's like on a post.

    The unique constraint turns a duplicate like into an IntegrityError,
    which is how concurrent toggles are resolved (see services.toggle_like).
    """
    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='likes',
    )
    user = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='likes',
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['post', 'user'],
                name='unique_like_per_user_per_post'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} liked {self.post_id}"


class Comment(models.Model):
    """
    Flat, immutable comment.

    Newest first is the only order comments are ever read in; the model
    ordering plus the (post, -created_at) index make that the storage order.
    """
    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='comments',
    )
    author = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='comments',
    )
    author_name = models.CharField(max_length=254, blank=True)
    text = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['post', '-created_at']),
        ]

    def __str__(self):
        return f"Comment by {self.author_id} on {self.post_id}"


class Notification(models.Model):
    """
    A notification delivered to one recipient about one sender's action.

    Created only by the dispatcher (notifications.py); only is_read ever
    changes afterwards.
    """

    class Type(models.TextChoices):
        LIKE = 'like', 'Like'
        COMMENT = 'comment', 'Comment'
        SHARE = 'share', 'Share'
        FOLLOW = 'follow', 'Follow'
        POST = 'post', 'Post'
        MOVIE_ACTIVITY = 'movie_activity', 'Movie activity'

    recipient = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    sender = models.ForeignKey(
        UserProfile,
        on_delete=models.CASCADE,
        related_name='sent_notifications',
    )
    sender_name = models.CharField(max_length=254)
    type = models.CharField(max_length=20, choices=Type.choices)
    message = models.CharField(max_length=500)
    is_read = models.BooleanField(default=False)
    # Survives deletion of the post it points at
    related_post = models.ForeignKey(
        Post,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    movie_title = models.CharField(max_length=300, blank=True)
    movie_action = models.CharField(max_length=16, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', '-created_at']),
            models.Index(fields=['recipient', 'is_read']),
        ]

    def __str__(self):
        return f"{self.sender_name} -> {self.recipient_id}: {self.type}"
