"""
Reservations API Tests
"""
import pytest

from core_backend.tests.fixtures import local_datetime
from reservations.models import Reservation
from reservations.services import ReservationScheduler


def reservations_url(tenant, suffix=""):
    return f"/api/restaurants/{tenant.id}/reservations/{suffix}"


@pytest.fixture
def monday_one_pm(tenant_a, next_monday_tenant_a):
    return local_datetime(tenant_a.get_timezone(), next_monday_tenant_a, 13)


@pytest.fixture
def booking(tenant_a, table_tenant_a, reservation_policy_tenant_a, monday_one_pm):
    return ReservationScheduler.create_reservation(tenant_a, table_tenant_a.pk, monday_one_pm, 2, "Luis")


@pytest.mark.django_db
class TestReservationsAPI:

    def test_create_reservation(self, staff_client, tenant_a, table_tenant_a, reservation_policy_tenant_a, monday_one_pm):
        response = staff_client.post(reservations_url(tenant_a), {
            "table_id": table_tenant_a.pk,
            "start_time": monday_one_pm.isoformat(),
            "party_size": 3,
            "customer_name": "Luis",
            "customer_email": "luis@example.com",
        }, format="json")

        assert response.status_code == 201, response.data
        assert response.data["status"] == Reservation.Status.PENDING
        assert response.data["table_number"] == "T1"
        assert len(response.data["confirmation_code"]) == 8
        assert Reservation.all_objects.get(pk=response.data["id"]).created_by == "staff-1"

    def test_start_time_without_offset_rejected(self, api_client, tenant_a, table_tenant_a, reservation_policy_tenant_a, monday_one_pm):
        response = api_client.post(reservations_url(tenant_a), {
            "table_id": table_tenant_a.pk,
            "start_time": monday_one_pm.replace(tzinfo=None).isoformat(),
            "party_size": 2,
            "customer_name": "Luis",
        }, format="json")

        assert response.status_code == 400
        assert response.data["code"] == "invalid"
        assert "start_time" in response.data["details"]

    def test_slot_conflict_details(self, api_client, tenant_a, table_tenant_a, booking, monday_one_pm):
        response = api_client.post(reservations_url(tenant_a), {
            "table_id": table_tenant_a.pk,
            "start_time": monday_one_pm.replace(hour=14).isoformat(),
            "party_size": 2,
            "customer_name": "Marta",
        }, format="json")

        assert response.status_code == 409
        assert response.data["code"] == "slot_conflict"
        assert response.data["details"]["conflicting_reservation_id"] == str(booking.pk)

    def test_outside_hours(self, api_client, tenant_a, table_tenant_a, reservation_policy_tenant_a, monday_one_pm):
        response = api_client.post(reservations_url(tenant_a), {
            "table_id": table_tenant_a.pk,
            "start_time": monday_one_pm.replace(hour=21).isoformat(),
            "party_size": 2,
            "customer_name": "Luis",
        }, format="json")

        assert response.status_code == 422
        assert response.data["code"] == "outside_operating_hours"

    def test_list_requires_date(self, api_client, tenant_a):
        response = api_client.get(reservations_url(tenant_a))

        assert response.status_code == 400
        assert "date" in response.data["details"]

    def test_list_for_day(self, api_client, tenant_a, booking, next_monday_tenant_a):
        response = api_client.get(reservations_url(tenant_a), {"date": next_monday_tenant_a.isoformat()})

        assert response.status_code == 200
        assert [row["id"] for row in response.data] == [str(booking.pk)]

    def test_policy(self, api_client, tenant_a, reservation_policy_tenant_a):
        response = api_client.get(reservations_url(tenant_a, "policy/"))

        assert response.status_code == 200
        assert response.data["slot_duration_minutes"] == 90
        assert [hours["day_of_week"] for hours in response.data["hours"]] == [0, 4, 6]

    def test_lifecycle_endpoints(self, staff_client, tenant_a, booking):
        response = staff_client.post(reservations_url(tenant_a, f"{booking.pk}/confirm/"))
        assert response.status_code == 200
        assert response.data["status"] == Reservation.Status.CONFIRMED

        response = staff_client.post(reservations_url(tenant_a, f"{booking.pk}/arrived/"))
        assert response.status_code == 200
        assert response.data["arrived_at"] is not None

        response = staff_client.post(reservations_url(tenant_a, f"{booking.pk}/complete/"))
        assert response.status_code == 200
        assert response.data["status"] == Reservation.Status.COMPLETED

        response = staff_client.post(reservations_url(tenant_a, f"{booking.pk}/cancel/"), {}, format="json")
        assert response.status_code == 409
        assert response.data["code"] == "already_processed"

        response = staff_client.get(reservations_url(tenant_a, f"{booking.pk}/history/"))
        assert [entry["new_status"] for entry in response.data] == ["pending", "confirmed", "completed"]

    def test_reschedule(self, api_client, tenant_a, booking, monday_one_pm):
        response = api_client.post(
            reservations_url(tenant_a, f"{booking.pk}/reschedule/"),
            {"start_time": monday_one_pm.replace(hour=18).isoformat()},
            format="json",
        )

        assert response.status_code == 200, response.data
        booking.refresh_from_db()
        assert booking.start_time == monday_one_pm.replace(hour=18)

    def test_other_restaurant_cannot_see_reservation(self, api_client, tenant_b, booking):
        response = api_client.get(reservations_url(tenant_b, f"{booking.pk}/"))

        assert response.status_code == 404
        assert response.data["code"] == "reservation_not_found"


@pytest.mark.django_db
class TestConfirmByCodeAPI:

    def test_confirm_with_code(self, api_client, booking):
        response = api_client.post(
            "/api/reservations/confirm/", {"code": booking.confirmation_code.lower()}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == Reservation.Status.CONFIRMED

    def test_unknown_code(self, api_client, db):
        response = api_client.post("/api/reservations/confirm/", {"code": "00000000"}, format="json")

        assert response.status_code == 400
        assert response.data["code"] == "invalid_or_expired_code"
        assert response.data["details"] == {"expired": False}
