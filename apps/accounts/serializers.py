from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from .models import User, OperatorRole


class OperatorSerializer(serializers.ModelSerializer):
    """Profile of the signed-in operator. Only the display name is editable."""

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name', 'role', 'created_at', 'last_login']
        read_only_fields = ['id', 'email', 'role', 'created_at', 'last_login']


class RegistrationSerializer(serializers.Serializer):
    # Duplicate emails are reported by register_user, not by a unique validator
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    password_confirm = serializers.CharField(write_only=True, style={'input_type': 'password'})
    display_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=OperatorRole.choices, required=False)

    def validate(self, attrs):
        if attrs['password'] != attrs.pop('password_confirm'):
            raise serializers.ValidationError({'password_confirm': 'Passwords do not match'})
        validate_password(attrs['password'], user=User(email=attrs['email']))
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class TokenPairSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    """Documentation shape of register/login responses."""

    user = OperatorSerializer()
    tokens = TokenPairSerializer()
