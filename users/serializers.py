"""Serializers for profile, registration and sign-in."""

from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User


class UserMeSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "first_name", "last_name", "phone", "role"]
        read_only_fields = fields


class RegistrationSerializer(serializers.ModelSerializer):
    """Create a customer account; any ``role`` in the payload is ignored."""

    password = serializers.CharField(write_only=True, style={"input_type": "password"})

    class Meta:
        model = User
        fields = ["username", "email", "password", "phone", "first_name", "last_name"]
        extra_kwargs = {"email": {"required": True}, "phone": {"required": False}}

    def validate_email(self, value: str) -> str:
        value = value.strip().lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email is already registered.")
        return value

    def validate_password(self, value: str) -> str:
        candidate = User(username=self.initial_data.get("username", ""), email=self.initial_data.get("email", ""))
        try:
            password_validation.validate_password(value, user=candidate)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(list(exc.messages))
        return value

    def create(self, validated_data):
        password = validated_data.pop("password")
        user = User(role=User.ROLE_CUSTOMER, **validated_data)
        user.set_password(password)
        user.save()
        return user


class SignOutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class SignInSerializer(serializers.Serializer):
    """Authenticate with an email (case-insensitive) or E.164 phone, plus password."""

    identifier = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        identifier = attrs["identifier"].strip()
        lookup = {"email": identifier.lower()} if "@" in identifier else {"phone": identifier}
        user = User.objects.filter(**lookup).first()
        if user is None or not user.is_active or not user.check_password(attrs["password"]):
            raise serializers.ValidationError({"detail": "Invalid credentials."})

        refresh = RefreshToken.for_user(user)
        refresh["role"] = user.role
        return {"access": str(refresh.access_token), "refresh": str(refresh), "role": user.role}
