"""
Soft delete (archiving) support shared by tables, menu items, staff,
orders and reservations.

Archived rows stay in the store for history and audit; they simply stop
counting as live resources.
"""

from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):
    def active(self):
        """Return only active (non-archived) records."""
        return self.filter(is_active=True)

    def archived(self):
        """Return only archived records."""
        return self.filter(is_active=False)


class SoftDeleteMixin(models.Model):
    """
    Abstract base giving a model ``is_active`` / ``archived_at`` /
    ``archived_by`` and turning ``delete()`` into an archive.
    """

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive records are archived (soft-deleted).",
    )
    archived_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this record was archived.",
    )
    archived_by = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Actor identifier that archived this record.",
    )

    class Meta:
        abstract = True

    def archive(self, archived_by=None, extra_update_fields=None):
        self.is_active = False
        self.archived_at = timezone.now()
        self.archived_by = str(archived_by) if archived_by else None
        update_fields = ["is_active", "archived_at", "archived_by"]
        if extra_update_fields:
            update_fields.extend(extra_update_fields)
        self.save(update_fields=update_fields)

    def delete(self, using=None, keep_parents=False):
        """Archive instead of deleting; rows are never hard-deleted."""
        self.archive()
