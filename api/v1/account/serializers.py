"""
Serializers for Account API endpoints.
"""

from rest_framework import serializers

from api.v1.serializers import LicenseKeySerializer, UserSerializer
from core.domain.value_objects import VerificationPurpose


class RegisterRequestSerializer(serializers.Serializer):
    """Serializer for register request."""

    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(max_length=128, trim_whitespace=False)
    activation_key = serializers.CharField(
        max_length=100, required=False, allow_blank=True, allow_null=True
    )


class LoginRequestSerializer(serializers.Serializer):
    """Serializer for login request."""

    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(max_length=128, trim_whitespace=False)


class SessionSerializer(serializers.Serializer):
    """Serializer for SessionDTO."""

    token = serializers.CharField()
    expires_at = serializers.DateTimeField()
    user = UserSerializer()


class RegistrationSerializer(serializers.Serializer):
    """Serializer for RegistrationDTO, flattened around the session."""

    token = serializers.CharField(source="session.token")
    expires_at = serializers.DateTimeField(source="session.expires_at")
    user = UserSerializer(source="session.user")
    activated_key = serializers.CharField(allow_null=True)
    activation_error = serializers.CharField(allow_null=True)


class SendVerificationCodeRequestSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    purpose = serializers.ChoiceField(
        choices=[purpose.value for purpose in VerificationPurpose],
        default=VerificationPurpose.REGISTER.value,
    )


class VerifyCodeRequestSerializer(SendVerificationCodeRequestSerializer):
    code = serializers.RegexField(r"^\d{6}$")


class ResetPasswordRequestSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    code = serializers.RegexField(r"^\d{6}$")
    new_password = serializers.CharField(max_length=128, trim_whitespace=False)


class ChangeEmailRequestSerializer(serializers.Serializer):
    new_email = serializers.EmailField(max_length=254)
    code = serializers.RegexField(r"^\d{6}$")


class KeyRequestSerializer(serializers.Serializer):
    """Serializer for claim and reactivate requests; the key may be typed loosely."""

    key = serializers.CharField(max_length=100)


class UserKeysSerializer(serializers.Serializer):
    """Serializer for UserKeysDTO."""

    active = LicenseKeySerializer(many=True)
    available = LicenseKeySerializer(many=True)
