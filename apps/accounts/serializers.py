from rest_framework import serializers
from .models import User, ButcherAdmin, ButcherRole


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'full_name']


class ButcherAdminSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)
    user_name = serializers.CharField(source='user.full_name', read_only=True)

    class Meta:
        model = ButcherAdmin
        fields = ['id', 'user_id', 'role', 'user_email', 'user_name', 'created_at']


class ButcherAdminCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=ButcherRole.choices, default=ButcherRole.PREP_ONLY)
