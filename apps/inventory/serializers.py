from rest_framework import serializers

from ispdesk.lib.mixins import BaseCustomModelSerializer
from inventory.models import InventoryItem, EquipmentAssignment


class InventoryItemModelSerializer(BaseCustomModelSerializer):
    status_text = serializers.CharField(source='get_status_display', read_only=True)
    item_type_text = serializers.CharField(source='get_item_type_display', read_only=True)

    class Meta:
        model = InventoryItem
        exclude = ('site',)
        read_only_fields = ('status',)


class EquipmentAssignmentModelSerializer(BaseCustomModelSerializer):
    item_name = serializers.CharField(source='item.name', read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)

    class Meta:
        model = EquipmentAssignment
        fields = '__all__'


class AssignItemSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass
