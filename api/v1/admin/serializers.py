"""
Serializers for Admin API endpoints.
"""

from django.conf import settings
from rest_framework import serializers

from api.v1.serializers import DurationField, LicenseKeySerializer
from core.domain.value_objects import KeyState


class GenerateKeysRequestSerializer(serializers.Serializer):
    """Serializer for generate keys request."""

    count = serializers.IntegerField(min_value=1)
    duration = DurationField()

    def validate_count(self, value):
        if value > settings.LICENSE_KEY_MAX_BATCH:
            raise serializers.ValidationError(
                f"Ensure this value is less than or equal to {settings.LICENSE_KEY_MAX_BATCH}."
            )
        return value


class MintErrorSerializer(serializers.Serializer):
    index = serializers.IntegerField()
    code = serializers.CharField()
    message = serializers.CharField()


class GenerateKeysResponseSerializer(serializers.Serializer):
    """Serializer for MintResultDTO."""

    keys = LicenseKeySerializer(many=True)
    errors = MintErrorSerializer(many=True)


class ReserveKeyRequestSerializer(serializers.Serializer):
    """Serializer for reserve key request."""

    user_id = serializers.UUIDField()
    duration = DurationField()


class KeyReferenceSerializer(serializers.Serializer):
    """Serializer for requests naming one key."""

    key = serializers.CharField(max_length=100, trim_whitespace=True)


class ListKeysQuerySerializer(serializers.Serializer):
    state = serializers.ChoiceField(
        choices=[state.value for state in KeyState], required=False
    )


class ListUsersQuerySerializer(serializers.Serializer):
    banned = serializers.BooleanField(required=False, allow_null=True, default=None)


class BanUsersRequestSerializer(serializers.Serializer):
    """Serializer for ban/unban request."""

    user_ids = serializers.ListField(
        child=serializers.UUIDField(), min_length=1, max_length=1000
    )


class BanResultSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    status = serializers.CharField()
    banned = serializers.BooleanField(allow_null=True)


class BanUsersResponseSerializer(serializers.Serializer):
    updated = serializers.IntegerField()
    results = BanResultSerializer(many=True)


class DailyCountSerializer(serializers.Serializer):
    day = serializers.DateField()
    count = serializers.IntegerField()


class KeyStatisticsSerializer(serializers.Serializer):
    """Serializer for KeyStatisticsDTO."""

    total_users = serializers.IntegerField()
    banned_users = serializers.IntegerField()
    total_keys = serializers.IntegerField()
    available_keys = serializers.IntegerField()
    active_keys = serializers.IntegerField()
    expired_keys = serializers.IntegerField()
    claims_per_day = DailyCountSerializer(many=True)
    estimated_revenue = serializers.IntegerField()
