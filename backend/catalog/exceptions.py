from core_backend.exceptions import DomainNotFoundError


class CatalogError(DomainNotFoundError):
    """Base exception for catalog lookups that do not resolve."""

    entity = "catalog entry"

    def __init__(self, entity_id, message=None):
        self.entity_id = entity_id
        if message is None:
            message = f"No active {self.entity} with id {entity_id}"
        super().__init__(message, details={"id": str(entity_id)})


class TableNotFound(CatalogError):
    code = "table_not_found"
    entity = "table"


class MenuItemNotFound(CatalogError):
    code = "menu_item_not_found"
    entity = "menu item"


class StaffMemberNotFound(CatalogError):
    code = "staff_member_not_found"
    entity = "staff member"
