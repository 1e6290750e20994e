from django.utils.translation import gettext as _
from rest_framework.decorators import action
from rest_framework.response import Response

from customers.models import Customer
from inventory import serializers
from inventory.models import InventoryItem, EquipmentAssignment, ItemStatus
from ispdesk.lib import LogicError
from ispdesk.lib.mixins import SiteFilterMixin
from ispdesk.viewsets import IspModelViewSet, IspReadOnlyModelViewSet


class InventoryItemModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = InventoryItem.objects.all()
    serializer_class = serializers.InventoryItemModelSerializer
    filterset_fields = ('status', 'item_type', 'category')

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        item = self.get_object()
        ser = serializers.AssignItemSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        customer = Customer.objects.filter(pk=ser.validated_data['customer_id']).first()
        if customer is None:
            raise LogicError(_('Customer not found'))
        assignment = item.assign_to(
            customer=customer,
            author=request.user,
            notes=ser.validated_data.get('notes')
        )
        return Response(serializers.EquipmentAssignmentModelSerializer(assignment).data)

    @action(detail=True, methods=['post'])
    def release(self, request, pk=None):
        item = self.get_object()
        if item.status not in (ItemStatus.ASSIGNED, ItemStatus.DEPLOYED):
            raise LogicError(_('Item is not assigned'))
        item.release()
        return Response(self.get_serializer(item).data)


class EquipmentAssignmentReadOnlyViewSet(IspReadOnlyModelViewSet):
    queryset = EquipmentAssignment.objects.select_related('item', 'customer')
    serializer_class = serializers.EquipmentAssignmentModelSerializer
    filterset_fields = ('customer', 'item')

    def get_queryset(self):
        qs = super().get_queryset()
        if self.request.user.is_superuser:
            return qs
        return qs.filter(item__site=self.request.site)
