from django.urls import path

from . import views

app_name = "subscriptions"

urlpatterns = [
    path("limits/", views.usage, name="usage"),
    path("limits/<str:kind>/", views.check_limit, name="check-limit"),
]
