from rest_framework import serializers
from .models import Gym, GymAdmin


class GymSerializer(serializers.ModelSerializer):
    class Meta:
        model = Gym
        fields = ['id', 'name', 'address', 'is_active']


class GymAdminSerializer(serializers.ModelSerializer):
    gym_id = serializers.UUIDField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)
    user_name = serializers.CharField(source='user.full_name', read_only=True)

    class Meta:
        model = GymAdmin
        fields = ['id', 'gym_id', 'user_id', 'user_email', 'user_name', 'created_at']


class GymAdminCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
