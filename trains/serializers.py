"""
Serializers for train management.
"""
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from rest_framework import serializers
from .models import Train


class TrainCreateSerializer(serializers.ModelSerializer):
    """Serializer for adding a train to the catalog."""
    number = serializers.IntegerField(min_value=1, max_value=settings.RAILWAY_MAX_INTEGER)
    fare = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))
    total_seats = serializers.IntegerField(min_value=0, max_value=settings.RAILWAY_MAX_INTEGER)

    class Meta:
        model = Train
        fields = ['number', 'name', 'source', 'destination', 'fare', 'total_seats']

    def create(self, validated_data):
        validated_data['available_seats'] = validated_data['total_seats']
        return Train.objects.create(**validated_data)


class TrainUpdateSerializer(serializers.Serializer):
    """Fare and capacity edits. A missing or null field keeps its value."""
    fare = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.00'),
        required=False, allow_null=True
    )
    total_seats = serializers.IntegerField(
        min_value=0, max_value=settings.RAILWAY_MAX_INTEGER,
        required=False, allow_null=True
    )

    @transaction.atomic
    def update(self, instance, validated_data):
        fare = validated_data.get('fare')
        total_seats = validated_data.get('total_seats')
        if fare is not None:
            instance.set_fare(fare)
        if total_seats is not None:
            instance.set_capacity(total_seats)
        return instance
