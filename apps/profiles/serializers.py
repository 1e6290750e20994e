from rest_framework import serializers

from ispdesk.lib.mixins import BaseCustomModelSerializer
from profiles.models import UserProfile, UserProfileLog


class UserProfileSerializer(BaseCustomModelSerializer):
    password = serializers.CharField(write_only=True, required=False)
    full_name = serializers.CharField(source="get_full_name", read_only=True)
    create_date = serializers.CharField(read_only=True)

    class Meta:
        model = UserProfile
        fields = ('id', 'username', 'fio', 'full_name', 'telephone', 'email',
                  'is_active', 'is_admin', 'is_superuser', 'create_date',
                  'password', 'sites')
        read_only_fields = ('is_admin', 'is_superuser', 'sites')

    def create(self, validated_data):
        return UserProfile.objects.create_superuser(
            telephone=validated_data.get("telephone"),
            username=validated_data.get("username"),
            password=validated_data.get("password"),
            fio=validated_data.get("fio", ''),
            email=validated_data.get("email", ''),
            is_active=validated_data.get("is_active", True),
        )

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        instance = super().update(instance, validated_data)
        if password:
            instance.set_password(password)
            instance.save(update_fields=['password'])
        return instance


class UserProfileLogSerializer(BaseCustomModelSerializer):
    do_type_text = serializers.CharField(source="get_do_type_display", read_only=True)
    author_name = serializers.CharField(source="account.get_full_name", read_only=True)

    class Meta:
        model = UserProfileLog
        fields = '__all__'
