from django.contrib.auth import get_user_model
from django.db.models import Q
from rest_framework import serializers

from .models import Store, StoreMember, AuditLog

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class StoreSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = ['id', 'name', 'description', 'logo_url', 'support_email', 'role', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_role(self, obj):
        """Role of the requesting user in this store"""
        request = self.context.get('request')
        if not request or not request.user.is_authenticated:
            return None
        membership = obj.members.filter(user=request.user).first()
        return membership.role if membership else None


class StoreSettingsSerializer(serializers.ModelSerializer):
    """Branding settings of a store"""
    name = serializers.CharField(max_length=200, allow_blank=False, trim_whitespace=True)
    support_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = Store
        fields = ['id', 'name', 'description', 'logo_url', 'support_email', 'updated_at']
        read_only_fields = ['id', 'updated_at']

    def validate_support_email(self, value):
        return value or None


class StoreMemberSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)
    email = serializers.CharField(source='user.email', read_only=True)

    class Meta:
        model = StoreMember
        fields = ['id', 'user', 'username', 'email', 'role', 'created_at']
        read_only_fields = ['id', 'user', 'created_at']


class StoreMemberCreateSerializer(serializers.Serializer):
    """Add a member by username or e-mail"""
    identifier = serializers.CharField()
    role = serializers.ChoiceField(choices=StoreMember.ROLE_CHOICES, default=StoreMember.ROLE_VIEWER)

    def validate_identifier(self, value):
        value = value.strip()
        user = User.objects.filter(Q(username=value) | Q(email__iexact=value)).first()
        if user is None:
            raise serializers.ValidationError('No user with this username or e-mail.')
        return user

    def validate(self, attrs):
        store = self.context['store']
        if StoreMember.objects.filter(store=store, user=attrs['identifier']).exists():
            raise serializers.ValidationError({'identifier': 'User is already a member of this store.'})
        return attrs

    def create(self, validated_data):
        return StoreMember.objects.create(
            store=self.context['store'],
            user=validated_data['identifier'],
            role=validated_data['role']
        )


class UploadSerializer(serializers.Serializer):
    FOLDER_CHOICES = ['products', 'billboards', 'logos']

    file = serializers.FileField()
    folder = serializers.ChoiceField(choices=FOLDER_CHOICES, default='products')


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']
