from django.urls import path, include
from rest_framework import routers

from .views import OrderItemViewSet, OrderViewSet

app_name = "orders"

router = routers.SimpleRouter()
router.register(r"orders/items", OrderItemViewSet, basename="order-item")
router.register(r"orders", OrderViewSet, basename="order")

urlpatterns = [
    path("", include(router.urls)),
]
