"""
Catalog services.

MenuCatalog and TableDirectory are the lookups the order and reservation
core depends on. CatalogService holds the plan-bound create/archive
operations, each admitted by the resource ledger in the same transaction
as its insert.
"""
import logging

from core_backend.transactions import retry_on_serialization_failure, transaction_scope
from subscriptions.models import ResourceKind
from subscriptions.services import resource_ledger
from tenant.managers import tenant_context

from .exceptions import MenuItemNotFound, StaffMemberNotFound, TableNotFound
from .models import AddOn, DiningTable, MenuItem, StaffMember

logger = logging.getLogger(__name__)


class MenuCatalog:
    """Menu item / add-on lookups scoped to one restaurant."""

    @staticmethod
    def get_menu_items(tenant, item_ids):
        """
        Return ``{id: MenuItem}`` for the active items of ``tenant`` among
        ``item_ids``. Missing or foreign ids are simply absent; callers decide
        whether that is an error.
        """
        with tenant_context(tenant):
            return {item.pk: item for item in MenuItem.objects.filter(pk__in=set(item_ids))}

    @staticmethod
    def get_add_ons(tenant, add_on_ids):
        with tenant_context(tenant):
            return {add_on.pk: add_on for add_on in AddOn.objects.filter(pk__in=set(add_on_ids))}


class TableDirectory:
    """Table existence / capacity lookups."""

    @staticmethod
    def get_table(tenant, table_id, for_update=False):
        """
        Return the active table ``table_id`` of ``tenant``.

        With ``for_update`` the row stays locked until the enclosing
        transaction ends.

        Raises:
            TableNotFound
        """
        with tenant_context(tenant):
            queryset = DiningTable.objects.all()
            if for_update:
                queryset = queryset.select_for_update()
            try:
                return queryset.get(pk=table_id)
            except (DiningTable.DoesNotExist, ValueError):
                raise TableNotFound(table_id)


class CatalogService:
    """Plan-bound CRUD for tables, menu items and staff seats."""

    @staticmethod
    @retry_on_serialization_failure
    def create_table(tenant, number, capacity, area="", deadline=None):
        with resource_ledger.reserve_slot(tenant, ResourceKind.TABLES, deadline=deadline):
            table = DiningTable.all_objects.create(
                tenant=tenant, number=number, capacity=capacity, area=area
            )
        logger.info(f"Created table {table.number} for tenant {tenant.pk}")
        return table

    @staticmethod
    def archive_table(tenant, table_id, actor=None):
        with transaction_scope():
            table = TableDirectory.get_table(tenant, table_id, for_update=True)
            table.archive(archived_by=actor)
        logger.info(f"Archived table {table.number} for tenant {tenant.pk}")
        return table

    @staticmethod
    @retry_on_serialization_failure
    def create_menu_item(tenant, name, price, description="", is_available=True, deadline=None):
        with resource_ledger.reserve_slot(tenant, ResourceKind.MENU_ITEMS, deadline=deadline):
            item = MenuItem.all_objects.create(
                tenant=tenant,
                name=name,
                price=price,
                description=description,
                is_available=is_available,
            )
        logger.info(f"Created menu item '{item.name}' for tenant {tenant.pk}")
        return item

    @staticmethod
    def archive_menu_item(tenant, item_id, actor=None):
        with transaction_scope():
            with tenant_context(tenant):
                try:
                    item = MenuItem.objects.select_for_update().get(pk=item_id)
                except (MenuItem.DoesNotExist, ValueError):
                    raise MenuItemNotFound(item_id)
            item.archive(archived_by=actor)
        return item

    @staticmethod
    @retry_on_serialization_failure
    def add_staff_member(tenant, external_user_id, display_name, role=StaffMember.Role.WAITER, deadline=None):
        with resource_ledger.reserve_slot(tenant, ResourceKind.USERS, deadline=deadline):
            member = StaffMember.all_objects.create(
                tenant=tenant,
                external_user_id=external_user_id,
                display_name=display_name,
                role=role,
            )
        logger.info(f"Added staff member {member.external_user_id} to tenant {tenant.pk}")
        return member

    @staticmethod
    def archive_staff_member(tenant, member_id, actor=None):
        with transaction_scope():
            with tenant_context(tenant):
                try:
                    member = StaffMember.objects.select_for_update().get(pk=member_id)
                except (StaffMember.DoesNotExist, ValueError):
                    raise StaffMemberNotFound(member_id)
            member.archive(archived_by=actor)
        return member
