"""
Watchscape URL Configuration
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def api_root(request):
    """Root endpoint with API information."""
    return JsonResponse({
        'message': 'Watchscape API Server',
        'version': '1.0',
        'endpoints': {
            'users': '/api/users',
            'profile': '/api/users/<uid>/profile',
            'movies': '/api/movies',
            'posts': '/api/posts',
            'notifications': '/api/notifications/<uid>',
        },
        'admin': '/admin/',
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin/', admin.site.urls),
    path('api/', include('social.urls')),
]
