from django.contrib import admin

from .models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'timezone', 'orders_enabled', 'auto_confirm_orders', 'is_active', 'created_at']
    list_filter = ['is_active', 'orders_enabled', 'auto_confirm_orders']
    search_fields = ['name', 'slug']
    readonly_fields = ['id', 'created_at', 'updated_at']
    prepopulated_fields = {'slug': ('name',)}
