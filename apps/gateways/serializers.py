from rest_framework import serializers

from gateways.models import MikrotikRouter
from ispdesk.lib.mixins import BaseCustomModelSerializer


class MikrotikRouterModelSerializer(BaseCustomModelSerializer):
    status_text = serializers.CharField(source='get_status_display', read_only=True)
    connection_status_text = serializers.CharField(source='get_connection_status_display', read_only=True)
    nas_client_id = serializers.IntegerField(source='nas_client.pk', read_only=True, default=None)

    class Meta:
        model = MikrotikRouter
        exclude = ('site',)
        extra_kwargs = {'password': {'write_only': True}}
        read_only_fields = (
            'status', 'connection_status', 'sync_status', 'last_test_results',
            'last_sync_at', 'last_error', 'inventory_item'
        )


class DisconnectSessionSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=64)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class RegisterFromInventorySerializer(serializers.Serializer):
    inventory_item_id = serializers.IntegerField()
    name = serializers.CharField(max_length=127, required=False)
    ip_address = serializers.IPAddressField()
    api_port = serializers.IntegerField(required=False, min_value=1, max_value=65535)
    username = serializers.CharField(max_length=64, required=False)
    password = serializers.CharField(max_length=127, required=False, allow_blank=True)
    snmp_community = serializers.CharField(max_length=64, required=False)
    pppoe_interface = serializers.CharField(max_length=64, required=False)
    dns_servers = serializers.CharField(max_length=128, required=False)
    client_network = serializers.CharField(max_length=43, required=False)
    gateway = serializers.IPAddressField(required=False, allow_null=True)
    radius_secret = serializers.CharField(max_length=128, required=False, allow_blank=True)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass
