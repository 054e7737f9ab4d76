from contextlib import contextmanager
from threading import local

from django.db import models

# Thread-local storage for current tenant
_thread_locals = local()


def set_current_tenant(tenant):
    """
    Set the current tenant for this thread.

    Args:
        tenant: Tenant instance or None to clear

    Called by the API views and by domain services entering a restaurant
    scoped operation.
    """
    _thread_locals.tenant = tenant


def get_current_tenant():
    """
    Get the current tenant for this thread.

    Returns:
        Tenant instance or None if no tenant context is set
    """
    return getattr(_thread_locals, 'tenant', None)


@contextmanager
def tenant_context(tenant):
    """
    Temporarily switch the current tenant, restoring the previous one on exit.

    Usage:
        with tenant_context(restaurant):
            MenuItem.objects.filter(id__in=ids)  # scoped to restaurant
    """
    previous = get_current_tenant()
    set_current_tenant(tenant)
    try:
        yield tenant
    finally:
        set_current_tenant(previous)


class TenantManager(models.Manager):
    """
    Automatically filters querysets by current tenant.

    FAILS CLOSED: Returns empty queryset if no tenant context is set.
    This prevents accidental data leakage across restaurants.

    Usage:
        class DiningTable(models.Model):
            tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE)

            objects = TenantManager()       # tenant-filtered
            all_objects = models.Manager()  # unfiltered, for services that
                                            # already hold an explicit tenant
    """

    def get_queryset(self):
        tenant = get_current_tenant()

        if tenant:
            return super().get_queryset().filter(tenant=tenant)

        # FAIL CLOSED
        return super().get_queryset().none()


class TenantSoftDeleteManager(models.Manager):
    """
    Tenant filtering plus soft delete: only active rows of the current tenant.
    """

    def _base_queryset(self):
        from core_backend.utils.archiving import SoftDeleteQuerySet

        qs = SoftDeleteQuerySet(self.model, using=self._db)

        tenant = get_current_tenant()
        if tenant:
            return qs.filter(tenant=tenant)
        # FAIL CLOSED
        return qs.none()

    def get_queryset(self):
        return self._base_queryset().active()

    def with_archived(self):
        """Return both active and archived records for current tenant."""
        return self._base_queryset()

    def archived_only(self):
        """Return only archived records for current tenant."""
        return self._base_queryset().archived()
