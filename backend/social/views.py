"""
DRF Views
=========

API endpoints for the social app. All routes live under /api.

AUTHENTICATION NOTE:
--------------------
There is no session or token authentication here. Identity comes from the
client as a uid in the request (userId, followerUid, viewerUid), issued by
the external identity provider the frontend signs in with.

ERRORS:
-------
Views let domain exceptions (social.exceptions) propagate; the custom
exception handler turns them into {"message": ...} with the right status.
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import accounts, collection, notifications, queries, services
from .catalog import get_catalog
from .exceptions import ValidationError
from .serializers import (
    ActorSerializer,
    CollectionEntrySerializer,
    CommentCreateSerializer,
    CommentSerializer,
    FollowSerializer,
    MovieEntrySerializer,
    MovieRefSerializer,
    NotificationSerializer,
    PinnedFilmSerializer,
    PostCreateSerializer,
    PostEditSerializer,
    PostSerializer,
    ProfileSerializer,
    RegisterSerializer,
    StatusSerializer,
    UserSerializer,
    UserSummarySerializer,
)


def _post_response(post, status_code=status.HTTP_200_OK):
    """Serialize one post with its movie refreshed from the catalog."""
    movies = queries.enrich_post_movies([post])
    return Response(PostSerializer(post, context={'movies': movies}).data, status=status_code)


# ============================================================================
# USERS
# ============================================================================

class UserListView(APIView):
    """
    GET  /api/users?q=<text>   Search users by name or email (max 20)
    POST /api/users            Register a user

    Body (POST):
    {
        "uid": "firebase-uid",
        "email": "a@b.c",
        "name": "Ada",
        "country": "UK",
        "age": 30
    }
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        users = accounts.search_users(request.query_params.get('q', ''))
        return Response(UserSummarySerializer(users, many=True).data)

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        accounts.register_user(**serializer.validated_data)
        return Response(
            {'message': 'User registered successfully'},
            status=status.HTTP_201_CREATED
        )


class UserDetailView(APIView):
    """GET /api/users/<uid>"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, uid):
        return Response(UserSerializer(accounts.get_user(uid)).data)


class FollowToggleView(APIView):
    """
    POST /api/users/<uid>/follow

    Toggle whether followerUid follows <uid>.

    Body: {"followerUid": "..."}
    Returns: {"following": true | false}
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request, uid):
        serializer = FollowSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        following = accounts.toggle_follow(uid, serializer.validated_data['followerUid'])
        return Response({'following': following})


class FollowersView(APIView):
    """GET /api/users/<uid>/followers"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, uid):
        return Response(UserSummarySerializer(accounts.list_followers(uid), many=True).data)


class FollowingView(APIView):
    """GET /api/users/<uid>/following"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, uid):
        return Response(UserSummarySerializer(accounts.list_following(uid), many=True).data)


class ProfileView(APIView):
    """
    GET /api/users/<uid>/profile?viewerUid=<uid>

    User, follow counts, pinned films, posts, collection counts and whether
    the viewer follows this user.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, uid):
        profile = queries.get_profile(uid, request.query_params.get('viewerUid'))
        return Response(ProfileSerializer(profile).data)


class PinFilmView(APIView):
    """
    PATCH /api/users/<uid>/pin-film

    Body: {"tmdbId": "603", "title": "The Matrix", "posterPath": "/x.jpg"}
    Returns: {"pinnedFilms": [...]}
    """
    permission_classes = [permissions.AllowAny]

    def patch(self, request, uid):
        serializer = MovieRefSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        accounts.pin_film(uid, serializer.validated_data)
        return Response({
            'pinnedFilms': PinnedFilmSerializer(accounts.pinned_films(uid), many=True).data
        })


class UnpinFilmView(APIView):
    """DELETE /api/users/<uid>/pin-film/<tmdb_id>"""
    permission_classes = [permissions.AllowAny]

    def delete(self, request, uid, tmdb_id):
        accounts.unpin_film(uid, tmdb_id)
        return Response({
            'pinnedFilms': PinnedFilmSerializer(accounts.pinned_films(uid), many=True).data
        })


# ============================================================================
# MOVIE COLLECTIONS
# ============================================================================

class MovieListView(APIView):
    """
    GET  /api/movies?userId=<uid>&status=watchlist|watched
    POST /api/movies

    GET returns the list newest first, each entry refreshed from the catalog
    (stored values are used when the catalog is unavailable).

    POST adds an entry without publishing an activity post; use
    /api/posts/movie-activity for that.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        rows = collection.list_by_owner_and_status(
            request.query_params.get('userId'),
            request.query_params.get('status'),
        )
        entries = [row['entry'] for row in rows]
        movies = {row['entry'].id: row['movie'] for row in rows}
        return Response(
            CollectionEntrySerializer(entries, many=True, context={'movies': movies}).data
        )

    def post(self, request):
        serializer = MovieEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        owner_uid = data.pop('userId')
        movie_status = data.pop('status')
        entry = collection.add_entry(owner_uid, data, movie_status)
        return Response(CollectionEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class MovieDetailView(APIView):
    """
    PUT    /api/movies/<id>   Body: {"status": "watched"}
    DELETE /api/movies/<id>

    A status change moves the entry in place. It fails with 400 when the
    movie is already in the destination list, and publishes an activity post
    when it succeeds.
    """
    permission_classes = [permissions.AllowAny]

    def put(self, request, entry_id):
        serializer = StatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = collection.transition_status(entry_id, serializer.validated_data['status'])
        return Response(CollectionEntrySerializer(entry).data)

    def delete(self, request, entry_id):
        collection.remove_entry(entry_id)
        return Response({'message': 'Movie removed'})


class MovieSearchView(APIView):
    """GET /api/movies/search?q=<text>  Raw catalog results."""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        query = (request.query_params.get('q') or '').strip()
        if not query:
            raise ValidationError('Search query is required')
        return Response(get_catalog().search(query))


class PopularMoviesView(APIView):
    """GET /api/movies/popular  Raw catalog results."""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(get_catalog().popular())


class MovieStatsView(APIView):
    """
    GET /api/movies/stats?userId=<uid>

    Returns: {"watchlistCount": 3, "watchedRecentCount": 1}
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        owner_uid = request.query_params.get('userId')
        if not owner_uid:
            raise ValidationError('userId is required')
        return Response(collection.counts_for(owner_uid))


# ============================================================================
# FEED
# ============================================================================

class PostListView(APIView):
    """
    GET  /api/posts   Every post, newest first
    POST /api/posts   Create a text post

    Body (POST):
    {
        "userId": "...",
        "text": "Loved it",
        "movie": {"tmdbId": "603", "title": "The Matrix"}  // optional
    }

    QUERY COUNT (GET): 3, independent of feed size
    1. Posts with authors
    2. Likes for all posts
    3. Comments with authors for all posts
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        posts = queries.get_feed_posts()
        movies = queries.enrich_post_movies(posts)
        return Response(PostSerializer(posts, many=True, context={'movies': movies}).data)

    def post(self, request):
        serializer = PostCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        post = services.create_text_post(data['userId'], data['text'], data.get('movie'))
        return _post_response(post, status.HTTP_201_CREATED)


class MovieActivityView(APIView):
    """
    POST /api/posts/movie-activity

    Add a movie to a list and publish the matching activity post.

    Body: same as POST /api/movies
    Returns: the entry, 201
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = MovieEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        owner_uid = data.pop('userId')
        movie_status = data.pop('status')
        entry = services.record_movie_activity(owner_uid, data, movie_status)
        return Response(CollectionEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class PostDetailView(APIView):
    """
    GET    /api/posts/<id>
    PUT    /api/posts/<id>   Body: {"userId": "...", "text": "..."}
    DELETE /api/posts/<id>   Body: {"userId": "..."}

    Edit and delete are limited to the post's author (403 otherwise).
    Only text posts can be edited.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, post_id):
        return _post_response(queries.get_post_detail(post_id))

    def put(self, request, post_id):
        serializer = PostEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.edit_post_text(
            post_id,
            serializer.validated_data['userId'],
            serializer.validated_data['text'],
        )
        return _post_response(queries.get_post_detail(post_id))

    def delete(self, request, post_id):
        # DELETE bodies are dropped by some clients; accept ?userId= too
        actor_uid = request.data.get('userId') or request.query_params.get('userId')
        services.delete_post(post_id, actor_uid)
        return Response({'message': 'Post deleted'})


class LikeToggleView(APIView):
    """
    PUT /api/posts/<id>/like

    Body: {"userId": "..."}
    Returns: {"likes": ["uid1", "uid2"]}

    NOT RETRY-SAFE: each call flips the like.
    """
    permission_classes = [permissions.AllowAny]

    def put(self, request, post_id):
        serializer = ActorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        likes = services.toggle_like(post_id, serializer.validated_data['userId'])
        return Response({'likes': likes})


class CommentCreateView(APIView):
    """
    POST /api/posts/<id>/comment

    Body: {"userId": "...", "text": "..."}
    Returns: {"comments": [...]} newest first
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request, post_id):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comments = services.add_comment(
            post_id,
            serializer.validated_data['userId'],
            serializer.validated_data['text'],
        )
        return Response({'comments': CommentSerializer(comments, many=True).data})


class ShareView(APIView):
    """
    POST /api/posts/<id>/share

    Body: {"userId": "..."}
    Returns: the new post, 201
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request, post_id):
        serializer = ActorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shared = services.share_post(post_id, serializer.validated_data['userId'])
        return _post_response(shared, status.HTTP_201_CREATED)


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class NotificationListView(APIView):
    """
    GET /api/notifications/<uid>?page=1&limit=20

    Offset pagination, newest first. limit is capped at 100.
    Returns: {"notifications": [...]}
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, uid):
        items = notifications.list_notifications(
            uid,
            page=request.query_params.get('page', 1),
            limit=request.query_params.get('limit'),
        )
        return Response({'notifications': NotificationSerializer(items, many=True).data})


class UnreadCountView(APIView):
    """GET /api/notifications/<uid>/unread-count -> {"unreadCount": 4}"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, uid):
        return Response({'unreadCount': notifications.unread_count(uid)})


class MarkReadView(APIView):
    """PATCH /api/notifications/<id>/read"""
    permission_classes = [permissions.AllowAny]

    def patch(self, request, notification_id):
        notification = notifications.mark_read(notification_id)
        return Response(NotificationSerializer(notification).data)


class MarkAllReadView(APIView):
    """PATCH /api/notifications/<uid>/read-all -> {"message": ..., "updated": n}"""
    permission_classes = [permissions.AllowAny]

    def patch(self, request, uid):
        updated = notifications.mark_all_read(uid)
        return Response({'message': 'All notifications marked as read', 'updated': updated})
