"""
Resource ledger errors.
"""
from rest_framework import status

from core_backend.exceptions import DomainValidationError, InfrastructureError


class LimitExceeded(DomainValidationError):
    """The restaurant already uses every slot its plan allows for this kind."""

    code = "limit_exceeded"
    http_status = status.HTTP_403_FORBIDDEN

    def __init__(self, tenant_id, kind, current_count, limit, message=None):
        self.tenant_id = tenant_id
        self.kind = kind
        self.current_count = current_count
        self.limit = limit
        if message is None:
            message = f"Plan limit reached for {kind}: {current_count} of {limit} in use"
        super().__init__(
            message,
            details={"kind": str(kind), "current_count": current_count, "limit": limit},
        )


class LedgerUnavailable(InfrastructureError):
    """The ledger transaction could not be started."""

    code = "ledger_unavailable"
    default_message = "Resource limits cannot be checked right now."
