"""
Social App URL Configuration

Paths carry no trailing slash; the client calls them exactly as listed.
"""
from django.urls import path
from .views import (
    UserListView,
    UserDetailView,
    FollowToggleView,
    FollowersView,
    FollowingView,
    ProfileView,
    PinFilmView,
    UnpinFilmView,
    MovieListView,
    MovieDetailView,
    MovieSearchView,
    PopularMoviesView,
    MovieStatsView,
    PostListView,
    MovieActivityView,
    PostDetailView,
    LikeToggleView,
    CommentCreateView,
    ShareView,
    NotificationListView,
    UnreadCountView,
    MarkReadView,
    MarkAllReadView,
)

urlpatterns = [
    # Users
    path('users', UserListView.as_view(), name='user-list'),
    path('users/<str:uid>', UserDetailView.as_view(), name='user-detail'),
    path('users/<str:uid>/follow', FollowToggleView.as_view(), name='user-follow'),
    path('users/<str:uid>/followers', FollowersView.as_view(), name='user-followers'),
    path('users/<str:uid>/following', FollowingView.as_view(), name='user-following'),
    path('users/<str:uid>/profile', ProfileView.as_view(), name='user-profile'),
    path('users/<str:uid>/pin-film', PinFilmView.as_view(), name='pin-film'),
    path('users/<str:uid>/pin-film/<str:tmdb_id>', UnpinFilmView.as_view(), name='unpin-film'),

    # Movie collections and catalog
    path('movies', MovieListView.as_view(), name='movie-list'),
    path('movies/search', MovieSearchView.as_view(), name='movie-search'),
    path('movies/popular', PopularMoviesView.as_view(), name='movie-popular'),
    path('movies/stats', MovieStatsView.as_view(), name='movie-stats'),
    path('movies/<int:entry_id>', MovieDetailView.as_view(), name='movie-detail'),

    # Feed
    path('posts', PostListView.as_view(), name='post-list'),
    path('posts/movie-activity', MovieActivityView.as_view(), name='movie-activity'),
    path('posts/<int:post_id>', PostDetailView.as_view(), name='post-detail'),
    path('posts/<int:post_id>/like', LikeToggleView.as_view(), name='post-like'),
    path('posts/<int:post_id>/comment', CommentCreateView.as_view(), name='post-comment'),
    path('posts/<int:post_id>/share', ShareView.as_view(), name='post-share'),

    # Notifications
    path('notifications/<int:notification_id>/read', MarkReadView.as_view(), name='notification-read'),
    path('notifications/<str:uid>/read-all', MarkAllReadView.as_view(), name='notification-read-all'),
    path('notifications/<str:uid>/unread-count', UnreadCountView.as_view(), name='notification-unread-count'),
    path('notifications/<str:uid>', NotificationListView.as_view(), name='notification-list'),
]
