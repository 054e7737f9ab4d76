from rest_framework import serializers

from .models import AddOn, DiningTable, MenuItem, StaffMember


class DiningTableSerializer(serializers.ModelSerializer):
    class Meta:
        model = DiningTable
        fields = ["id", "number", "capacity", "area", "is_active", "created_at"]
        read_only_fields = ["id", "is_active", "created_at"]


class AddOnSerializer(serializers.ModelSerializer):
    class Meta:
        model = AddOn
        fields = ["id", "name", "price", "is_available"]


class MenuItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuItem
        fields = ["id", "name", "description", "price", "is_available", "is_active"]
        read_only_fields = ["id", "is_active"]


class StaffMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffMember
        fields = ["id", "external_user_id", "display_name", "role", "is_active"]
        read_only_fields = ["id", "is_active"]
