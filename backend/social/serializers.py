"""
DRF Serializers
===============

Serializers handle:
1. Validation of incoming request bodies
2. Rendering model instances in the camelCase shape the client expects
   (userId, posterPath, movieActivity, isRead, ...)

DESIGN DECISIONS:
-----------------
1. Input and output serializers are separate; inputs are plain Serializers
   whose validated_data is handed to the service layer
2. Live-enriched movie data is computed before serialization and passed in
   via context['movies'] ({object id: movie dict}), so serializers never
   call the catalog themselves
3. Comment and like lists read the prefetch cache when the query layer
   prefetched them
4. Posts, list entries and notifications carry their primary key twice,
   as `id` and `_id`; the client addresses records by `_id`
"""

from rest_framework import serializers

from .models import CollectionEntry, Comment, MovieStatus, Notification, PinnedFilm, Post, UserProfile


# ============================================================================
# OUTPUT
# ============================================================================

class UserSerializer(serializers.ModelSerializer):
    """Profile core."""
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = UserProfile
        fields = ['uid', 'name', 'email', 'country', 'age', 'createdAt']
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Minimal user representation for lists (search, followers)."""
    displayName = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = UserProfile
        fields = ['uid', 'name', 'email', 'displayName']
        read_only_fields = fields


class PinnedFilmSerializer(serializers.ModelSerializer):
    tmdbId = serializers.CharField(source='tmdb_id')
    posterPath = serializers.CharField(source='poster_path')

    class Meta:
        model = PinnedFilm
        fields = ['tmdbId', 'title', 'posterPath']
        read_only_fields = fields


class CollectionEntrySerializer(serializers.ModelSerializer):
    """
    A list entry. When context['movies'] carries a live-enriched MovieRef for
    the entry, its values replace the stored snapshot.
    """
    _id = serializers.IntegerField(source='id', read_only=True)
    userId = serializers.CharField(source='owner_id')
    tmdbId = serializers.CharField(source='tmdb_id')
    posterPath = serializers.CharField(source='poster_path')
    releaseDate = serializers.CharField(source='release_date')
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = CollectionEntry
        fields = [
            'id', '_id', 'userId', 'status', 'tmdbId', 'title', 'posterPath',
            'releaseDate', 'overview', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        movie = self.context.get('movies', {}).get(instance.id)
        if movie:
            data.update(movie)
        return data


class CommentSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source='author_id')
    userName = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Comment
        fields = ['id', 'userId', 'userName', 'text', 'createdAt']
        read_only_fields = fields

    def get_userName(self, obj):
        # Snapshot first; resolve from the author only when it was never set
        return obj.author_name or obj.author.display_name


class PostSerializer(serializers.ModelSerializer):
    """
    A feed post.

    Text posts expose their optional movie as `movie`; movie-activity posts
    expose `movieActivity: {action, movie}` and a null `movie`.
    """
    _id = serializers.IntegerField(source='id', read_only=True)
    userId = serializers.CharField(source='author_id')
    username = serializers.CharField(source='author_name')
    type = serializers.CharField(source='kind')
    movie = serializers.SerializerMethodField()
    movieActivity = serializers.SerializerMethodField()
    likes = serializers.SerializerMethodField()
    comments = CommentSerializer(many=True, read_only=True)
    sharedFrom = serializers.PrimaryKeyRelatedField(source='shared_from', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Post
        fields = [
            'id', '_id', 'userId', 'username', 'type', 'text', 'movie',
            'movieActivity', 'likes', 'comments', 'sharedFrom',
            'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def _movie(self, obj):
        return self.context.get('movies', {}).get(obj.id, obj.movie)

    def get_movie(self, obj):
        if obj.is_movie_activity:
            return None
        return self._movie(obj)

    def get_movieActivity(self, obj):
        if not obj.is_movie_activity:
            return None
        return {'action': obj.activity_action, 'movie': self._movie(obj)}

    def get_likes(self, obj):
        return [like.user_id for like in obj.likes.all()]


class NotificationSerializer(serializers.ModelSerializer):
    _id = serializers.IntegerField(source='id', read_only=True)
    recipientUid = serializers.CharField(source='recipient_id')
    senderUid = serializers.CharField(source='sender_id')
    senderName = serializers.CharField(source='sender_name')
    isRead = serializers.BooleanField(source='is_read')
    postId = serializers.PrimaryKeyRelatedField(source='related_post', read_only=True)
    movieTitle = serializers.CharField(source='movie_title')
    movieAction = serializers.CharField(source='movie_action')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Notification
        fields = [
            'id', '_id', 'recipientUid', 'senderUid', 'senderName', 'type',
            'message', 'isRead', 'postId', 'movieTitle', 'movieAction', 'createdAt',
        ]
        read_only_fields = fields


class ProfileSerializer(serializers.Serializer):
    """Aggregate built by queries.get_profile()."""
    user = UserSerializer()
    followersCount = serializers.IntegerField()
    followingCount = serializers.IntegerField()
    followedByViewer = serializers.BooleanField()
    pinnedFilms = PinnedFilmSerializer(many=True)
    posts = PostSerializer(many=True)
    watchlistCount = serializers.IntegerField()
    watchedRecentCount = serializers.IntegerField()


# ============================================================================
# INPUT
# ============================================================================

class RegisterSerializer(serializers.Serializer):
    uid = serializers.CharField(max_length=128)
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    name = serializers.CharField(required=False, allow_blank=True, max_length=150, default='')
    country = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=150, default=None)


class FollowSerializer(serializers.Serializer):
    followerUid = serializers.CharField()


class MovieRefSerializer(serializers.Serializer):
    """
    A movie snapshot as sent by the client. tmdbId may arrive as a number
    (TMDB ids are integers) and is stored as a string.
    """
    tmdbId = serializers.CharField(max_length=32)
    title = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    posterPath = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    releaseDate = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    overview = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')


class MovieEntrySerializer(MovieRefSerializer):
    """Body of POST /movies and POST /posts/movie-activity."""
    userId = serializers.CharField()
    status = serializers.ChoiceField(choices=MovieStatus.choices)


class StatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=MovieStatus.choices)


class PostCreateSerializer(serializers.Serializer):
    userId = serializers.CharField()
    text = serializers.CharField()
    movie = MovieRefSerializer(required=False, allow_null=True)


class PostEditSerializer(serializers.Serializer):
    userId = serializers.CharField()
    text = serializers.CharField()


class ActorSerializer(serializers.Serializer):
    """Body of like/share/delete requests: who is acting."""
    userId = serializers.CharField()


class CommentCreateSerializer(serializers.Serializer):
    userId = serializers.CharField()
    text = serializers.CharField()
