from rest_framework import serializers

from devices.models import NetworkDevice
from ispdesk.lib.mixins import BaseCustomModelSerializer


class NetworkDeviceModelSerializer(BaseCustomModelSerializer):
    status_text = serializers.CharField(source='get_status_display', read_only=True)
    device_type_text = serializers.CharField(source='get_device_type_display', read_only=True)
    router_name = serializers.CharField(source='router.name', read_only=True, default=None)

    class Meta:
        model = NetworkDevice
        exclude = ('site',)
        read_only_fields = ('status', 'last_polled', 'metrics', 'last_error')
