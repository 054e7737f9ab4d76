from rest_framework import mixins, status, viewsets
from rest_framework.request import Request
from rest_framework.response import Response

from .models import AddOn, DiningTable, MenuItem, StaffMember
from .serializers import AddOnSerializer, DiningTableSerializer, MenuItemSerializer, StaffMemberSerializer
from .services import CatalogService


class PlanBoundViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    List / create / archive for resources counted against the restaurant's
    plan. Subclasses name the service calls; creation is refused with
    ``limit_exceeded`` once the plan is full.
    """

    model = None

    def get_queryset(self):
        # Re-evaluated per request so the tenant context of this request applies
        return self.model.objects.all()

    def perform_plan_create(self, request, data):
        raise NotImplementedError

    def perform_archive(self, request, pk):
        raise NotImplementedError

    def create(self, request: Request, restaurant_id=None) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        instance = self.perform_plan_create(request, serializer.validated_data)
        return Response(self.get_serializer(instance).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, restaurant_id=None, pk=None) -> Response:
        self.perform_archive(request, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DiningTableViewSet(PlanBoundViewSet):
    model = DiningTable
    serializer_class = DiningTableSerializer

    def perform_plan_create(self, request, data):
        return CatalogService.create_table(request.tenant, data["number"], data["capacity"], area=data.get("area", ""))

    def perform_archive(self, request, pk):
        CatalogService.archive_table(request.tenant, pk, actor=request.actor_id)


class MenuItemViewSet(PlanBoundViewSet):
    model = MenuItem
    serializer_class = MenuItemSerializer

    def perform_plan_create(self, request, data):
        return CatalogService.create_menu_item(
            request.tenant,
            data["name"],
            data["price"],
            description=data.get("description", ""),
            is_available=data.get("is_available", True),
        )

    def perform_archive(self, request, pk):
        CatalogService.archive_menu_item(request.tenant, pk, actor=request.actor_id)


class StaffMemberViewSet(PlanBoundViewSet):
    model = StaffMember
    serializer_class = StaffMemberSerializer

    def perform_plan_create(self, request, data):
        return CatalogService.add_staff_member(
            request.tenant,
            data["external_user_id"],
            data["display_name"],
            role=data.get("role", StaffMember.Role.WAITER),
        )

    def perform_archive(self, request, pk):
        CatalogService.archive_staff_member(request.tenant, pk, actor=request.actor_id)


class AddOnViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = AddOnSerializer

    def get_queryset(self):
        return AddOn.objects.all()
