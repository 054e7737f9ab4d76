from rest_framework import serializers

from .models import SubscriptionLimits


class SlotDecisionSerializer(serializers.Serializer):
    kind = serializers.CharField()
    granted = serializers.BooleanField()
    current_count = serializers.IntegerField()
    limit = serializers.IntegerField()
    unlimited = serializers.BooleanField()
    remaining = serializers.IntegerField(allow_null=True)


class SubscriptionLimitsSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubscriptionLimits
        fields = ["plan", "max_tables", "max_menu_items", "max_users", "updated_at"]
