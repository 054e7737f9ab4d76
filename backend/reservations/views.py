import logging

from django.utils.dateparse import parse_date
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view
from rest_framework.exceptions import ValidationError
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    ConfirmationCodeSerializer,
    ReservationCancelSerializer,
    ReservationCreateSerializer,
    ReservationPolicySerializer,
    ReservationRescheduleSerializer,
    ReservationSerializer,
    ReservationStateHistorySerializer,
)
from .services import ReservationScheduler

logger = logging.getLogger(__name__)


class ReservationViewSet(viewsets.ViewSet):
    """
    Reservations of one restaurant, resolved from the URL by
    ``TenantMiddleware``. All writes go through ``ReservationScheduler``.
    """

    def list(self, request: Request, restaurant_id=None) -> Response:
        """``?date=YYYY-MM-DD`` (restaurant-local), optional ``include_cancelled=true``."""
        day = parse_date(request.query_params.get("date", "") or "")
        if day is None:
            raise ValidationError({"date": "A date in YYYY-MM-DD format is required."})
        include_cancelled = request.query_params.get("include_cancelled", "").lower() in ("1", "true", "yes")

        reservations = ReservationScheduler.reservations_for_day(
            request.tenant, day, include_cancelled=include_cancelled
        )
        return Response(ReservationSerializer(reservations, many=True).data)

    def retrieve(self, request: Request, restaurant_id=None, pk=None) -> Response:
        reservation = ReservationScheduler.get_reservation(request.tenant, pk)
        return Response(ReservationSerializer(reservation).data)

    def create(self, request: Request, restaurant_id=None) -> Response:
        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reservation = ReservationScheduler.create_reservation(
            request.tenant,
            actor=request.actor_id,
            **serializer.validated_data,
        )
        return Response(ReservationSerializer(reservation).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="policy")
    def policy(self, request: Request, restaurant_id=None) -> Response:
        policy = ReservationScheduler.get_policy(request.tenant)
        return Response(ReservationPolicySerializer(policy).data)

    @action(detail=True, methods=["post"], url_path="confirm")
    def confirm(self, request: Request, restaurant_id=None, pk=None) -> Response:
        reservation = ReservationScheduler.confirm_reservation(request.tenant, pk, actor=request.actor_id)
        return Response(ReservationSerializer(reservation).data)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request: Request, restaurant_id=None, pk=None) -> Response:
        serializer = ReservationCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reservation = ReservationScheduler.cancel_reservation(
            request.tenant, pk, reason=serializer.validated_data["reason"], actor=request.actor_id
        )
        return Response(ReservationSerializer(reservation).data)

    @action(detail=True, methods=["post"], url_path="reschedule")
    def reschedule(self, request: Request, restaurant_id=None, pk=None) -> Response:
        serializer = ReservationRescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reservation = ReservationScheduler.reschedule_reservation(
            request.tenant, pk, actor=request.actor_id, **serializer.validated_data
        )
        return Response(ReservationSerializer(reservation).data)

    @action(detail=True, methods=["post"], url_path="arrived")
    def arrived(self, request: Request, restaurant_id=None, pk=None) -> Response:
        reservation = ReservationScheduler.mark_arrived(request.tenant, pk, actor=request.actor_id)
        return Response(ReservationSerializer(reservation).data)

    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request: Request, restaurant_id=None, pk=None) -> Response:
        reservation = ReservationScheduler.mark_completed(request.tenant, pk, actor=request.actor_id)
        return Response(ReservationSerializer(reservation).data)

    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request: Request, restaurant_id=None, pk=None) -> Response:
        entries = ReservationScheduler.get_history(request.tenant, pk)
        return Response(ReservationStateHistorySerializer(entries, many=True).data)


@api_view(["POST"])
def confirm_by_code(request: Request) -> Response:
    """Public endpoint behind the link sent to the customer."""
    serializer = ConfirmationCodeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    reservation = ReservationScheduler.confirm_by_code(serializer.validated_data["code"])
    return Response(ReservationSerializer(reservation).data)
