"""
URL configuration for core_backend project.

Restaurant-scoped endpoints live under ``api/restaurants/<restaurant_id>/``;
``TenantMiddleware`` resolves the restaurant from that parameter.
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path

from reservations.views import confirm_by_code


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


restaurant_patterns = [
    path("", include("orders.urls")),
    path("", include("reservations.urls")),
    path("", include("catalog.urls")),
    path("", include("subscriptions.urls")),
]

urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("api/reservations/confirm/", confirm_by_code, name="reservation-confirm-by-code"),
    path("api/restaurants/<uuid:restaurant_id>/", include(restaurant_patterns)),
]
