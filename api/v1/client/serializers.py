"""
Serializers for Client API endpoints.
"""

from rest_framework import serializers


class ValidateKeyRequestSerializer(serializers.Serializer):
    """Serializer for validate-key request."""

    key = serializers.CharField(max_length=100)
    hardware_id = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True
    )


class ValidateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for validate-license request."""

    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(max_length=128, trim_whitespace=False)
    hardware_id = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True
    )


class KeyValidationSerializer(serializers.Serializer):
    """Serializer for KeyValidationDTO."""

    valid = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    expired = serializers.BooleanField()
    hwid_mismatch = serializers.BooleanField()
    key = serializers.CharField(allow_null=True)
    duration = serializers.CharField(allow_null=True)
    claimed_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    hardware_id = serializers.CharField(allow_null=True)


class LicenseInfoSerializer(serializers.Serializer):
    key = serializers.CharField()
    duration = serializers.CharField()
    is_lifetime = serializers.BooleanField()
    claimed_at = serializers.DateTimeField()
    expires_at = serializers.DateTimeField(allow_null=True)
    time_remaining = serializers.CharField(allow_null=True)
    hardware_id = serializers.CharField(allow_null=True)


class UserSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    email = serializers.EmailField()


class LicenseValidationSerializer(serializers.Serializer):
    """Serializer for LicenseValidationDTO."""

    valid = serializers.BooleanField()
    authenticated = serializers.BooleanField()
    has_license = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    expired = serializers.BooleanField()
    hwid_mismatch = serializers.BooleanField()
    last_expiry = serializers.DateTimeField(allow_null=True)
    license = LicenseInfoSerializer(allow_null=True)
    user = UserSummarySerializer(allow_null=True)
