from rest_framework import serializers

from ispdesk.lib.mixins import BaseCustomModelSerializer
from radiusapp.models import (
    RadiusGroup, RadiusServer, NasClient, RadiusUser,
    RadiusSession, RadiusEvent, SystemTestResult
)


class RadiusGroupModelSerializer(BaseCustomModelSerializer):
    rate_limit = serializers.CharField(read_only=True)

    class Meta:
        model = RadiusGroup
        exclude = ('site',)


class RadiusServerModelSerializer(BaseCustomModelSerializer):
    class Meta:
        model = RadiusServer
        exclude = ('site',)
        extra_kwargs = {'secret': {'write_only': True}}
        read_only_fields = ('last_synced_at',)


class NasClientModelSerializer(BaseCustomModelSerializer):
    nas_type_text = serializers.CharField(source='get_nas_type_display', read_only=True)
    router_name = serializers.CharField(source='router.name', read_only=True, default=None)

    class Meta:
        model = NasClient
        exclude = ('site',)
        extra_kwargs = {'secret': {'write_only': True}}


class RadiusUserModelSerializer(BaseCustomModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    group_name = serializers.CharField(source='group.name', read_only=True, default=None)
    rate_limit = serializers.CharField(read_only=True)

    class Meta:
        model = RadiusUser
        exclude = ('site', 'password')
        read_only_fields = (
            'customer', 'username', 'sync_status', 'last_synced_at',
            'last_error', 'is_online', 'last_seen_at'
        )


class RadiusSessionModelSerializer(BaseCustomModelSerializer):
    class Meta:
        model = RadiusSession
        fields = '__all__'


class RadiusEventModelSerializer(BaseCustomModelSerializer):
    class Meta:
        model = RadiusEvent
        exclude = ('site',)


class SystemTestResultModelSerializer(BaseCustomModelSerializer):
    status_text = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = SystemTestResult
        exclude = ('site',)


class GenerateCredentialsSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    regenerate = serializers.BooleanField(default=False)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass
