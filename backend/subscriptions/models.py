from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

# Sentinel limit value meaning "no ceiling"
UNLIMITED = -1


class ResourceKind(models.TextChoices):
    TABLES = "tables", _("Tables")
    MENU_ITEMS = "menu_items", _("Menu Items")
    USERS = "users", _("Users")


class SubscriptionLimits(models.Model):
    """
    Per-restaurant resource ceilings derived from the active subscription plan.

    Read by the resource ledger before any plan-bound creation; the ledger
    never writes to it. A value of -1 means unlimited.
    """

    class Plan(models.TextChoices):
        FREE = "free", _("Free")
        BASIC = "basic", _("Basic")
        PREMIUM = "premium", _("Premium")
        CUSTOM = "custom", _("Custom")

    PLAN_PRESETS = {
        Plan.FREE: {"max_tables": 5, "max_menu_items": 15, "max_users": 1},
        Plan.BASIC: {"max_tables": 20, "max_menu_items": 100, "max_users": 5},
        Plan.PREMIUM: {"max_tables": UNLIMITED, "max_menu_items": UNLIMITED, "max_users": UNLIMITED},
    }

    tenant = models.OneToOneField(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="subscription_limits",
    )
    plan = models.CharField(max_length=20, choices=Plan.choices, default=Plan.FREE)
    max_tables = models.IntegerField(
        default=5,
        validators=[MinValueValidator(UNLIMITED)],
        help_text=_("Maximum active tables, -1 for unlimited"),
    )
    max_menu_items = models.IntegerField(
        default=15,
        validators=[MinValueValidator(UNLIMITED)],
        help_text=_("Maximum active menu items, -1 for unlimited"),
    )
    max_users = models.IntegerField(
        default=1,
        validators=[MinValueValidator(UNLIMITED)],
        help_text=_("Maximum active staff users, -1 for unlimited"),
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Subscription Limits")
        verbose_name_plural = _("Subscription Limits")

    def __str__(self):
        return f"{self.tenant} ({self.get_plan_display()})"

    def limit_for(self, kind):
        field_name = {
            ResourceKind.TABLES: "max_tables",
            ResourceKind.MENU_ITEMS: "max_menu_items",
            ResourceKind.USERS: "max_users",
        }[ResourceKind(kind)]
        return getattr(self, field_name)

    @classmethod
    def apply_plan(cls, tenant, plan):
        """Create or reset a restaurant's limits from a plan preset."""
        preset = cls.PLAN_PRESETS[cls.Plan(plan)]
        limits, _created = cls.objects.update_or_create(
            tenant=tenant,
            defaults={"plan": plan, **preset},
        )
        return limits


class ResourceLedgerLock(models.Model):
    """
    One row per (restaurant, resource kind). Locking it serializes slot
    reservations for that pair without blocking other kinds or restaurants.
    """

    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="resource_ledger_locks",
    )
    kind = models.CharField(max_length=20, choices=ResourceKind.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "kind"], name="unique_ledger_lock_per_kind"),
        ]

    def __str__(self):
        return f"{self.tenant_id}:{self.kind}"
