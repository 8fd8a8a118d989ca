"""
Root URL configuration.

The portal API is mounted at the site root (``api/...``, ``healthz``,
``metrics``); the Django admin gives read-only access to the roster and
editing of the health feed.  OpenAPI docs: ``/swagger/``, ``/redoc/`` and
the raw schema at ``/swagger.json``.
"""
from django.contrib import admin
from django.urls import include, path, re_path

from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

api_info = openapi.Info(
    title="PharmaGuard Portal API",
    default_version='v1',
    description=(
        "Pharmacy duty rosters and health feed for the community portal. "
        "Administrative calls carry the shared password in the X-Admin-Password header."
    ),
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('portal.routers')),
    re_path(r'^swagger(?P<format>\.json|\.yaml)$', schema_view.without_ui(cache_timeout=0), name='schema-json'),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
