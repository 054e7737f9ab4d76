from rest_framework import serializers

from .models import Reservation, ReservationHours, ReservationPolicy, ReservationStateHistory


class ReservationSerializer(serializers.ModelSerializer):
    restaurant_id = serializers.UUIDField(source="tenant_id", read_only=True)
    table_number = serializers.CharField(source="table.number", read_only=True)

    class Meta:
        model = Reservation
        fields = [
            "id",
            "restaurant_id",
            "table",
            "table_number",
            "customer_name",
            "customer_phone",
            "customer_email",
            "notes",
            "start_time",
            "end_time",
            "blocked_until",
            "party_size",
            "status",
            "confirmation_code",
            "confirmed_at",
            "cancelled_at",
            "cancellation_reason",
            "arrived_at",
            "departed_at",
            "created_at",
        ]
        read_only_fields = fields


class ReservationStateHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ReservationStateHistory
        fields = ["id", "previous_status", "new_status", "actor", "notes", "created_at"]


class ReservationHoursSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReservationHours
        fields = ["day_of_week", "is_closed", "opening_time", "closing_time"]


class ReservationPolicySerializer(serializers.ModelSerializer):
    hours = ReservationHoursSerializer(many=True, read_only=True)

    class Meta:
        model = ReservationPolicy
        fields = [
            "reservations_enabled",
            "slot_duration_minutes",
            "buffer_minutes",
            "min_party_size",
            "max_party_size",
            "min_advance_hours",
            "max_advance_days",
            "hours",
        ]


# --- Input serializers ---

class ReservationCreateSerializer(serializers.Serializer):
    table_id = serializers.IntegerField()
    start_time = serializers.DateTimeField()
    party_size = serializers.IntegerField(min_value=1)
    customer_name = serializers.CharField(max_length=150)
    customer_phone = serializers.CharField(required=False, allow_blank=True, max_length=30, default="")
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_start_time(self, value):
        # DateTimeField makes naive input aware in the server timezone; require an explicit offset instead
        raw = self.initial_data.get("start_time", "")
        if isinstance(raw, str) and not (raw.endswith("Z") or "+" in raw[10:] or "-" in raw[10:]):
            raise serializers.ValidationError("start_time must include a UTC offset.")
        return value


class ReservationRescheduleSerializer(serializers.Serializer):
    start_time = serializers.DateTimeField()
    table_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    party_size = serializers.IntegerField(required=False, allow_null=True, min_value=1, default=None)


class ReservationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ConfirmationCodeSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=16)
