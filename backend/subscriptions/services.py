"""
Resource ledger: admission control for plan-bound resources.

The only safe way to create a table, menu item or staff user is:

    with resource_ledger.reserve_slot(restaurant, ResourceKind.TABLES):
        DiningTable.all_objects.create(...)

The slot check and the insert share one transaction, and the per
(restaurant, kind) lock row is held until that transaction ends, so two
writers can never both observe "N-1 of N" and both proceed.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass

from django.apps import apps
from django.conf import settings

from core_backend.transactions import transaction_scope

from .exceptions import LedgerUnavailable, LimitExceeded
from .models import UNLIMITED, ResourceKind, ResourceLedgerLock, SubscriptionLimits

logger = logging.getLogger(__name__)

DEFAULT_COUNTED_MODELS = {
    ResourceKind.TABLES: "catalog.DiningTable",
    ResourceKind.MENU_ITEMS: "catalog.MenuItem",
    ResourceKind.USERS: "catalog.StaffMember",
}


@dataclass(frozen=True)
class SlotDecision:
    kind: str
    granted: bool
    current_count: int
    limit: int

    @property
    def unlimited(self):
        return self.limit == UNLIMITED

    @property
    def remaining(self):
        if self.unlimited:
            return None
        return max(self.limit - self.current_count, 0)


class ResourceLedger:
    """Counts live resources per restaurant and compares them to plan limits."""

    def __init__(self, counted_models=None):
        self.counted_models = counted_models or getattr(
            settings, "RESOURCE_LEDGER_MODELS", DEFAULT_COUNTED_MODELS
        )

    def get_limit(self, tenant, kind) -> int:
        # No limits row means no plan: deny rather than allow
        limits = SubscriptionLimits.objects.filter(tenant=tenant).first()
        if limits is None:
            return 0
        return limits.limit_for(kind)

    def count(self, tenant, kind) -> int:
        model = apps.get_model(self.counted_models[ResourceKind(kind)])
        return model._base_manager.filter(tenant=tenant, is_active=True).count()

    def _lock(self, tenant, kind):
        lock, _created = ResourceLedgerLock.objects.get_or_create(tenant=tenant, kind=kind)
        return ResourceLedgerLock.objects.select_for_update().get(pk=lock.pk)

    def _decide(self, tenant, kind) -> SlotDecision:
        limit = self.get_limit(tenant, kind)
        current = self.count(tenant, kind)
        granted = limit == UNLIMITED or current < limit
        return SlotDecision(kind=kind, granted=granted, current_count=current, limit=limit)

    def try_reserve_slot(self, tenant, kind, deadline=None) -> SlotDecision:
        """
        Decide whether ``tenant`` may create one more resource of ``kind``.

        Takes the (tenant, kind) lock for the rest of the enclosing
        transaction. Called outside a transaction the lock is released on
        return, so the answer is only advisory; use ``reserve_slot`` to
        create the resource under the same lock.

        Returns a SlotDecision; never writes anything.

        Raises:
            LedgerUnavailable: the transaction could not be started
        """
        kind = ResourceKind(kind)
        with transaction_scope(deadline=deadline, unavailable_error=LedgerUnavailable):
            self._lock(tenant, kind)
            decision = self._decide(tenant, kind)

        if decision.granted:
            logger.debug(
                f"Slot granted for {kind} on tenant {tenant.pk}: {decision.current_count}/{decision.limit}"
            )
        else:
            logger.info(
                f"Slot denied for {kind} on tenant {tenant.pk}: {decision.current_count}/{decision.limit}"
            )
        return decision

    @contextmanager
    def reserve_slot(self, tenant, kind, deadline=None):
        """
        Transaction scope in which exactly one resource of ``kind`` may be
        inserted. Raises LimitExceeded before the block runs when no slot is
        free; any exception inside the block rolls the insert back.
        """
        kind = ResourceKind(kind)
        with transaction_scope(deadline=deadline, unavailable_error=LedgerUnavailable):
            decision = self.try_reserve_slot(tenant, kind)
            if not decision.granted:
                raise LimitExceeded(tenant.pk, kind, decision.current_count, decision.limit)
            yield decision

    def check_limit(self, tenant, kind) -> SlotDecision:
        """Read-only snapshot of one kind, without taking the lock."""
        return self._decide(tenant, ResourceKind(kind))

    def usage(self, tenant):
        """Snapshot of every resource kind for a restaurant."""
        return {kind.value: self.check_limit(tenant, kind) for kind in ResourceKind}


resource_ledger = ResourceLedger()
