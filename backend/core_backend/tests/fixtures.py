"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like restaurants, plan limits, tables, menu items and reservation policies.
"""
from datetime import datetime, time, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from catalog.models import AddOn, DiningTable, MenuItem
from reservations.models import ReservationHours, ReservationPolicy
from subscriptions.models import SubscriptionLimits
from tenant.models import Tenant


def next_weekday(weekday, tz, after=None):
    """
    Local date of the next ``weekday`` (0 = Monday) strictly after today in
    ``tz``, so slots on it are always ahead of the booking window minimum.
    """
    after = after or timezone.now()
    today = after.astimezone(tz).date()
    days_ahead = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days_ahead)


def local_datetime(tz, day, hour, minute=0):
    """Aware datetime for ``day`` at ``hour:minute`` wall-clock time in ``tz``."""
    return tz.localize(datetime.combine(day, time(hour, minute)))


# ============================================================================
# TENANT FIXTURES
# ============================================================================

@pytest.fixture
def tenant_a(db):
    """Create test tenant A (Pizza Place), on Bogota time (UTC-5, no DST)"""
    return Tenant.objects.create(
        name='Pizza Place',
        slug='pizza-place',
        timezone='America/Bogota',
        is_active=True
    )


@pytest.fixture
def tenant_b(db):
    """Create test tenant B (Burger Joint)"""
    return Tenant.objects.create(
        name='Burger Joint',
        slug='burger-joint',
        timezone='UTC',
        is_active=True
    )


@pytest.fixture
def inactive_tenant(db):
    """Create inactive test tenant"""
    return Tenant.objects.create(
        name='Closed Restaurant',
        slug='closed-restaurant',
        is_active=False
    )


# ============================================================================
# PLAN LIMIT FIXTURES
# ============================================================================

@pytest.fixture
def free_plan_tenant_a(tenant_a):
    """Free plan: 5 tables, 15 menu items, 1 user"""
    return SubscriptionLimits.apply_plan(tenant_a, SubscriptionLimits.Plan.FREE)


@pytest.fixture
def premium_plan_tenant_b(tenant_b):
    """Premium plan: unlimited everything"""
    return SubscriptionLimits.apply_plan(tenant_b, SubscriptionLimits.Plan.PREMIUM)


# ============================================================================
# CATALOG FIXTURES
# ============================================================================

@pytest.fixture
def table_tenant_a(tenant_a):
    return DiningTable.all_objects.create(tenant=tenant_a, number='T1', capacity=4, area='Main hall')


@pytest.fixture
def large_table_tenant_a(tenant_a):
    return DiningTable.all_objects.create(tenant=tenant_a, number='T2', capacity=8, area='Terrace')


@pytest.fixture
def table_tenant_b(tenant_b):
    return DiningTable.all_objects.create(tenant=tenant_b, number='B1', capacity=4)


@pytest.fixture
def menu_item_tenant_a(tenant_a):
    return MenuItem.all_objects.create(tenant=tenant_a, name='Margherita', price=Decimal('10.00'))


@pytest.fixture
def second_menu_item_tenant_a(tenant_a):
    return MenuItem.all_objects.create(tenant=tenant_a, name='Garlic Bread', price=Decimal('4.50'))


@pytest.fixture
def sold_out_menu_item_tenant_a(tenant_a):
    return MenuItem.all_objects.create(
        tenant=tenant_a, name='Truffle Pizza', price=Decimal('18.00'), is_available=False
    )


@pytest.fixture
def menu_item_tenant_b(tenant_b):
    return MenuItem.all_objects.create(tenant=tenant_b, name='Cheeseburger', price=Decimal('9.00'))


@pytest.fixture
def add_on_tenant_a(tenant_a):
    return AddOn.all_objects.create(tenant=tenant_a, name='Extra Cheese', price=Decimal('1.50'))


@pytest.fixture
def sold_out_add_on_tenant_a(tenant_a):
    return AddOn.all_objects.create(
        tenant=tenant_a, name='Anchovies', price=Decimal('2.00'), is_available=False
    )


# ============================================================================
# RESERVATION FIXTURES
# ============================================================================

@pytest.fixture
def reservation_policy_tenant_a(tenant_a):
    """
    90 minute slots with a 15 minute buffer.

    Hours: Monday 12:00-22:00, Friday 18:00-02:00 (past midnight),
    Sunday closed, other days without hours (closed).
    """
    policy = ReservationPolicy.objects.create(
        tenant=tenant_a,
        reservations_enabled=True,
        slot_duration_minutes=90,
        buffer_minutes=15,
        max_party_size=10,
        min_party_size=1,
        min_advance_hours=2,
        max_advance_days=30,
    )
    ReservationHours.objects.create(
        policy=policy, day_of_week=0, opening_time=time(12, 0), closing_time=time(22, 0)
    )
    ReservationHours.objects.create(
        policy=policy, day_of_week=4, opening_time=time(18, 0), closing_time=time(2, 0)
    )
    ReservationHours.objects.create(policy=policy, day_of_week=6, is_closed=True)
    return policy


@pytest.fixture
def next_monday_tenant_a(tenant_a):
    """Local date of the next Monday for tenant A"""
    return next_weekday(0, tenant_a.get_timezone())
