"""Serializers for account registration."""
from rest_framework import serializers
from .models import Account


class RegistrationSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(max_length=128, trim_whitespace=False)

    def validate_username(self, value):
        if any(ch.isspace() for ch in value):
            raise serializers.ValidationError("Username cannot contain spaces.")
        return value

    def create(self, validated_data):
        # Registration never creates admin accounts.
        return Account.objects.create_account(
            username=validated_data['username'],
            password=validated_data['password'],
        )
