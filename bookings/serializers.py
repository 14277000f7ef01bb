"""
Serializers for booking input.
"""
from rest_framework import serializers

from .models import Passenger

GENDER_CODES = [code for code, _ in Passenger.GENDER_CHOICES]


class PassengerInputSerializer(serializers.Serializer):
    """Serializer for passenger input during booking."""
    name = serializers.CharField(max_length=255)
    age = serializers.IntegerField(min_value=0, max_value=32767)
    gender = serializers.CharField(max_length=1)

    def validate_gender(self, value):
        value = value.upper()
        if value not in GENDER_CODES:
            raise serializers.ValidationError("Gender must be one of M, F or O.")
        return value


class BookingConfirmSerializer(serializers.Serializer):
    """Passenger list for a seat hold; its length must match the hold."""
    passengers = PassengerInputSerializer(many=True)

    def validate_passengers(self, value):
        expected = self.context['passenger_count']
        if not value:
            raise serializers.ValidationError("At least one passenger is required.")
        if len(value) != expected:
            raise serializers.ValidationError(
                f"Expected details for {expected} passenger(s), got {len(value)}."
            )
        return value
