from django.contrib import admin

from .models import AddOn, DiningTable, MenuItem, StaffMember


class TenantScopedAdmin(admin.ModelAdmin):
    """Admin runs without a tenant context, so list every restaurant's rows."""

    def get_queryset(self, request):
        return self.model.all_objects.select_related("tenant")


@admin.register(DiningTable)
class DiningTableAdmin(TenantScopedAdmin):
    list_display = ("number", "tenant", "capacity", "area", "is_active")
    list_filter = ("is_active", "tenant")


@admin.register(MenuItem)
class MenuItemAdmin(TenantScopedAdmin):
    list_display = ("name", "tenant", "price", "is_available", "is_active")
    list_filter = ("is_available", "is_active", "tenant")
    search_fields = ("name",)


@admin.register(AddOn)
class AddOnAdmin(TenantScopedAdmin):
    list_display = ("name", "tenant", "price", "is_available")


@admin.register(StaffMember)
class StaffMemberAdmin(TenantScopedAdmin):
    list_display = ("display_name", "tenant", "role", "is_active")
    list_filter = ("role", "is_active")
