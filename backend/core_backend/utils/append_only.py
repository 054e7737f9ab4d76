"""
Append-only storage for audit records.

Rows are inserted once and never updated or deleted through the ORM.
"""
from django.db import models


class ImmutableRecordError(Exception):
    """Raised on any attempt to modify or remove an audit record."""


class AppendOnlyQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableRecordError(f"{self.model.__name__} records cannot be updated")

    def delete(self):
        raise ImmutableRecordError(f"{self.model.__name__} records cannot be deleted")


class AppendOnlyModel(models.Model):
    """Abstract base for history tables: insert-only, ordered by (created_at, id)."""

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(f"{type(self).__name__} records cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ImmutableRecordError(f"{type(self).__name__} records cannot be deleted")
