from django.contrib import admin

from .models import Reservation, ReservationHours, ReservationPolicy, ReservationStateHistory


class ReservationHoursInline(admin.TabularInline):
    model = ReservationHours
    extra = 0


@admin.register(ReservationPolicy)
class ReservationPolicyAdmin(admin.ModelAdmin):
    list_display = (
        "tenant",
        "reservations_enabled",
        "slot_duration_minutes",
        "buffer_minutes",
        "max_party_size",
    )
    list_filter = ("reservations_enabled",)
    inlines = [ReservationHoursInline]


class ReservationStateHistoryInline(admin.TabularInline):
    model = ReservationStateHistory
    extra = 0
    fields = ("created_at", "previous_status", "new_status", "actor", "notes")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("customer_name", "tenant", "table", "start_time", "party_size", "status", "confirmation_code")
    list_filter = ("status", "tenant")
    search_fields = ("customer_name", "customer_phone", "customer_email", "confirmation_code")
    date_hierarchy = "start_time"
    readonly_fields = ("confirmation_code", "end_time", "blocked_until", "confirmed_at", "cancelled_at")
    inlines = [ReservationStateHistoryInline]

    def get_queryset(self, request):
        return Reservation.all_objects.select_related("tenant", "table")
