"""
Transaction Boundary Tests

Deadline enforcement and retry of transient serialization conflicts.
"""
import time
from unittest import mock

import pytest
from django.db import OperationalError, transaction

from core_backend.exceptions import OperationTimeout
from core_backend.transactions import (
    is_serialization_failure,
    retry_on_serialization_failure,
    transaction_scope,
)
from tenant.models import Tenant


class FakeDriverError(Exception):
    def __init__(self, sqlstate):
        super().__init__("driver error")
        self.sqlstate = sqlstate


def operational_error(message, sqlstate=None):
    error = OperationalError(message)
    if sqlstate is not None:
        error.__cause__ = FakeDriverError(sqlstate)
    return error


class TestSerializationFailureDetection:

    def test_postgres_sqlstate(self):
        assert is_serialization_failure(operational_error("conflict", sqlstate="40001"))
        assert is_serialization_failure(operational_error("deadlock", sqlstate="40P01"))

    def test_sqlite_lock_message(self):
        assert is_serialization_failure(operational_error("database is locked"))

    def test_other_errors(self):
        assert not is_serialization_failure(operational_error("no such table: orders_order"))


class TestRetry:

    def test_transient_conflict_retried_once(self):
        calls = mock.Mock(side_effect=[operational_error("database is locked"), "done"])

        @retry_on_serialization_failure(attempts=1, backoff=0)
        def operation():
            return calls()

        assert operation() == "done"
        assert calls.call_count == 2

    def test_gives_up_after_attempts(self):
        calls = mock.Mock(side_effect=operational_error("database is locked"))

        @retry_on_serialization_failure(attempts=2, backoff=0)
        def operation():
            return calls()

        with pytest.raises(OperationalError):
            operation()
        assert calls.call_count == 3

    def test_other_errors_not_retried(self):
        calls = mock.Mock(side_effect=operational_error("disk I/O error"))

        @retry_on_serialization_failure(attempts=3, backoff=0)
        def operation():
            return calls()

        with pytest.raises(OperationalError):
            operation()
        assert calls.call_count == 1

    @pytest.mark.django_db
    def test_not_retried_inside_enclosing_transaction(self):
        calls = mock.Mock(side_effect=[operational_error("database is locked"), "done"])

        @retry_on_serialization_failure(attempts=1, backoff=0)
        def operation():
            return calls()

        with transaction.atomic():
            with pytest.raises(OperationalError):
                operation()
        assert calls.call_count == 1


@pytest.mark.django_db
class TestTransactionScope:

    def test_commits_within_deadline(self):
        with transaction_scope(deadline=5):
            Tenant.objects.create(name="Fast", slug="fast")

        assert Tenant.objects.filter(slug="fast").exists()

    def test_deadline_exceeded_rolls_back(self):
        with pytest.raises(OperationTimeout) as exc_info:
            with transaction_scope(deadline=0.01):
                Tenant.objects.create(name="Slow", slug="slow")
                time.sleep(0.05)

        assert exc_info.value.details["deadline_seconds"] == 0.01
        assert exc_info.value.http_status == 504
        assert not Tenant.objects.filter(slug="slow").exists()

    def test_error_inside_scope_rolls_back(self):
        with pytest.raises(ValueError):
            with transaction_scope():
                Tenant.objects.create(name="Broken", slug="broken")
                raise ValueError("boom")

        assert not Tenant.objects.filter(slug="broken").exists()

    def test_unavailable_store_mapped_to_caller_error(self):
        class StoreDown(Exception):
            pass

        with mock.patch(
            "core_backend.transactions.transaction.atomic",
            side_effect=OperationalError("could not connect to server"),
        ):
            with pytest.raises(StoreDown):
                with transaction_scope(unavailable_error=StoreDown):
                    pass
