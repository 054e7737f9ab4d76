from django.contrib import admin

from .models import SubscriptionLimits


@admin.register(SubscriptionLimits)
class SubscriptionLimitsAdmin(admin.ModelAdmin):
    list_display = ("tenant", "plan", "max_tables", "max_menu_items", "max_users", "updated_at")
    list_filter = ("plan",)
    search_fields = ("tenant__name", "tenant__slug")
