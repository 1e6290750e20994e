from rest_framework.decorators import action
from rest_framework.response import Response

from devices import serializers
from devices.models import NetworkDevice
from ispdesk.lib.mixins import SiteFilterMixin
from ispdesk.viewsets import IspModelViewSet


class NetworkDeviceModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = NetworkDevice.objects.select_related('router')
    serializer_class = serializers.NetworkDeviceModelSerializer
    filterset_fields = ('status', 'device_type', 'router', 'is_monitored')

    @action(detail=True, methods=['post'])
    def poll(self, request, pk=None):
        device = self.get_object()
        device.poll()
        return Response(self.get_serializer(device).data)

    @action(detail=False)
    def summary(self, request):
        return Response(self.get_queryset().status_summary())
