from django.urls import path, include
from rest_framework import routers

from .views import ReservationViewSet

app_name = "reservations"

router = routers.SimpleRouter()
router.register(r"reservations", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("", include(router.urls)),
]
