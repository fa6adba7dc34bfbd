"""
Django Admin Configuration for Social Models
"""
from django.contrib import admin
from .models import (
    CollectionEntry,
    Comment,
    Follow,
    Like,
    Notification,
    PinnedFilm,
    Post,
    UserProfile,
)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['uid', 'name', 'email', 'country', 'created_at']
    list_filter = ['country', 'created_at']
    search_fields = ['uid', 'name', 'email']
    readonly_fields = ['created_at']


@admin.register(Follow)
class FollowAdmin(admin.ModelAdmin):
    list_display = ['follower', 'followee', 'created_at']
    search_fields = ['follower__uid', 'followee__uid']


@admin.register(CollectionEntry)
class CollectionEntryAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'status', 'tmdb_id', 'updated_at']
    list_filter = ['status', 'updated_at']
    search_fields = ['title', 'tmdb_id', 'owner__uid']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(PinnedFilm)
class PinnedFilmAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'tmdb_id', 'created_at']
    search_fields = ['title', 'tmdb_id', 'owner__uid']


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ['id', 'author', 'kind', 'activity_action', 'shared_from', 'created_at']
    list_filter = ['kind', 'created_at']
    search_fields = ['text', 'author__uid', 'author_name']
    readonly_fields = ['author_name', 'created_at', 'updated_at']


@admin.register(Like)
class LikeAdmin(admin.ModelAdmin):
    list_display = ['user', 'post', 'created_at']
    list_filter = ['created_at']
    search_fields = ['user__uid']


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['id', 'post', 'author', 'created_at']
    list_filter = ['created_at']
    search_fields = ['text', 'author__uid']
    readonly_fields = ['author_name', 'created_at']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'sender', 'type', 'is_read', 'created_at']
    list_filter = ['type', 'is_read', 'created_at']
    search_fields = ['recipient__uid', 'sender__uid', 'message']
    readonly_fields = [
        'recipient', 'sender', 'sender_name', 'type', 'message',
        'related_post', 'movie_title', 'movie_action', 'created_at',
    ]

    def has_add_permission(self, request):
        # Notifications are only created by the services
        return False
