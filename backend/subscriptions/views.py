from rest_framework.decorators import api_view
from rest_framework.exceptions import NotFound
from rest_framework.request import Request
from rest_framework.response import Response

from .models import ResourceKind, SubscriptionLimits
from .serializers import SlotDecisionSerializer, SubscriptionLimitsSerializer
from .services import resource_ledger


@api_view(["GET"])
def usage(request: Request, restaurant_id=None) -> Response:
    """Current count and plan limit for every resource kind."""
    limits = SubscriptionLimits.objects.filter(tenant=request.tenant).first()
    decisions = resource_ledger.usage(request.tenant)
    return Response({
        "limits": SubscriptionLimitsSerializer(limits).data if limits else None,
        "usage": {kind: SlotDecisionSerializer(decision).data for kind, decision in decisions.items()},
    })


@api_view(["GET"])
def check_limit(request: Request, restaurant_id=None, kind=None) -> Response:
    if kind not in ResourceKind.values:
        raise NotFound(f"Unknown resource kind '{kind}'")
    decision = resource_ledger.check_limit(request.tenant, kind)
    return Response(SlotDecisionSerializer(decision).data)
