from django.urls import path, include
from rest_framework import routers

from .views import AddOnViewSet, DiningTableViewSet, MenuItemViewSet, StaffMemberViewSet

app_name = "catalog"

router = routers.SimpleRouter()
router.register(r"tables", DiningTableViewSet, basename="table")
router.register(r"menu-items", MenuItemViewSet, basename="menu-item")
router.register(r"add-ons", AddOnViewSet, basename="add-on")
router.register(r"staff", StaffMemberViewSet, basename="staff-member")

urlpatterns = [
    path("", include(router.urls)),
]
