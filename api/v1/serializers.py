"""
Serializers shared by the v1 API groups.
"""

from rest_framework import serializers

from core.domain.value_objects import KeyDuration


class DurationField(serializers.Field):
    """Accepts a duration value or any known label; renders the canonical value."""

    default_error_messages = {"invalid": "Unknown duration: {value}"}

    def to_internal_value(self, data):
        try:
            return KeyDuration.from_label(data)
        except (ValueError, TypeError):
            self.fail("invalid", value=data)

    def to_representation(self, value):
        return value.value


class LicenseKeySerializer(serializers.Serializer):
    """Serializer for LicenseKeyDTO."""

    id = serializers.UUIDField()
    key = serializers.CharField()
    duration = serializers.CharField()
    duration_label = serializers.CharField()
    state = serializers.CharField()
    is_lifetime = serializers.BooleanField()
    can_be_used_for_registration = serializers.BooleanField()
    created_at = serializers.DateTimeField()
    owner_user_id = serializers.UUIDField(allow_null=True)
    purchased_by_user_id = serializers.UUIDField(allow_null=True)
    claimed_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    hardware_id = serializers.CharField(allow_null=True)


class UserSerializer(serializers.Serializer):
    """Serializer for UserDTO."""

    id = serializers.UUIDField()
    email = serializers.EmailField()
    banned = serializers.BooleanField()
    created_at = serializers.DateTimeField()
