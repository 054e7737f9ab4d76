import logging

from django.core.exceptions import ValidationError
from django.http import JsonResponse

from .managers import set_current_tenant
from .models import Tenant

logger = logging.getLogger(__name__)


class TenantNotFoundError(Exception):
    """Raised when tenant cannot be resolved from request."""
    pass


class TenantMiddleware:
    """
    Resolves the restaurant from the ``restaurant_id`` URL parameter and
    attaches it to ``request.tenant``.

    Also sets the thread-local tenant used by ``TenantManager`` so querysets
    inside the view are scoped to that restaurant, and attaches
    ``request.actor_id`` (identity provider user id from the ``X-Actor-Id``
    header, None for public callers).

    Examples:
        /api/restaurants/<uuid>/orders/ -> Tenant <uuid>
        /api/health/                    -> no tenant
    """

    ACTOR_HEADER = "X-Actor-Id"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.tenant = None
        request.actor_id = request.headers.get(self.ACTOR_HEADER) or None
        try:
            return self.get_response(request)
        finally:
            # Always clean up so the tenant never leaks into the next request on this thread
            set_current_tenant(None)

    def process_view(self, request, view_func, view_args, view_kwargs):
        if "restaurant_id" not in view_kwargs:
            return None

        try:
            tenant = self.get_tenant_from_request(view_kwargs["restaurant_id"])
        except TenantNotFoundError as e:
            return JsonResponse({
                'code': 'tenant_not_found',
                'message': str(e),
                'details': {},
            }, status=404)

        if not tenant.is_active:
            return JsonResponse({
                'code': 'tenant_inactive',
                'message': 'Restaurant account is inactive',
                'details': {},
            }, status=403)

        request.tenant = tenant
        set_current_tenant(tenant)
        return None

    def get_tenant_from_request(self, restaurant_id):
        try:
            return Tenant.objects.get(pk=restaurant_id)
        except (Tenant.DoesNotExist, ValidationError, ValueError):
            logger.info(f"Request for unknown restaurant {restaurant_id}")
            raise TenantNotFoundError(f"Restaurant {restaurant_id} not found")
