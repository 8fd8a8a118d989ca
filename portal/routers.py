"""
URL mappings for the portal API.

Paths follow the verb-suffixed style used by the front-end client
(``.../add``, ``.../update``).  Trailing slashes are deliberately omitted.
"""
from django.urls import path, include

from .views import feedback
from .views import health
from .views import posts
from .views import roster


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Duty roster
    path('api/weeks', roster.weeks, name='weeks'),
    path('api/weeks/replace', roster.weeks_replace, name='weeks_replace'),
    # Health feed
    path('api/posts', posts.posts, name='posts'),
    path('api/posts/<int:pk>/like', posts.post_like, name='post_like'),
    path('api/posts/<int:pk>/unlike', posts.post_unlike, name='post_unlike'),
    path('api/posts/<int:pk>/comments', posts.post_comments, name='post_comments'),
    path('api/posts/<int:pk>/comments/add', posts.post_comment_add, name='post_comment_add'),
    # Health feed administration
    path('api/admin/posts', posts.admin_posts, name='admin_posts'),
    path('api/admin/posts/create', posts.admin_post_create, name='admin_post_create'),
    path('api/admin/posts/<int:pk>/update', posts.admin_post_update, name='admin_post_update'),
    path('api/admin/posts/<int:pk>/delete', posts.admin_post_delete, name='admin_post_delete'),
    # Feedback & assistant
    path('api/feedback', feedback.feedback, name='feedback'),
    path('api/assistant', feedback.assistant, name='assistant'),
]
