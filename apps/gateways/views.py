from django.db import IntegrityError
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from gateways import serializers
from gateways.gw_facade import GatewayNetworkError
from gateways.models import MikrotikRouter
from gateways.nas import register_nas, reconcile_nas_clients
from inventory.models import InventoryItem
from ispdesk.exceptions import UniqueConstraintIntegrityError
from ispdesk.lib import LogicError
from ispdesk.lib.mixins import SiteFilterMixin
from ispdesk.viewsets import IspModelViewSet
from profiles.models import UserProfileLogActionType
from radiusapp.models import RadiusUser
from radiusapp.session_control import close_active_sessions


class MikrotikRouterModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = MikrotikRouter.objects.select_related('nas_client')
    serializer_class = serializers.MikrotikRouterModelSerializer
    filterset_fields = ('status', 'connection_status', 'is_enabled')

    def perform_create(self, serializer, **kwargs):
        router = super().perform_create(serializer=serializer, **kwargs)
        self.request.user.log(
            do_type=UserProfileLogActionType.CREATE_ROUTER,
            additional_text='"%s" %s' % (router.name, router.ip_address)
        )
        return router

    def perform_destroy(self, instance):
        self.request.user.log(
            do_type=UserProfileLogActionType.DELETE_ROUTER,
            additional_text='"%s" %s' % (instance.name, instance.ip_address)
        )
        return super().perform_destroy(instance)

    @action(detail=True, methods=['post'])
    def test_connection(self, request, pk=None):
        router = self.get_object()
        res = router.test_connection()
        return Response({
            'connection_status': router.connection_status,
            'status': router.status,
            'results': res,
        })

    @action(detail=True)
    def active_sessions(self, request, pk=None):
        router = self.get_object()
        gw = router.get_gw_manager()
        try:
            sessions = gw.get_active_pppoe_sessions()
        except GatewayNetworkError as err:
            return Response({
                'success': False,
                'error': str(err)
            }, status=status.HTTP_502_BAD_GATEWAY)
        finally:
            gw.close()
        return Response(sessions)

    @action(detail=True, methods=['post'])
    def disconnect_session(self, request, pk=None):
        router = self.get_object()
        ser = serializers.DisconnectSessionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        username = ser.validated_data['username']
        gw = router.get_gw_manager()
        try:
            kicked = gw.kick_pppoe_session(username)
        except GatewayNetworkError as err:
            return Response({
                'success': False,
                'error': str(err)
            }, status=status.HTTP_502_BAD_GATEWAY)
        finally:
            gw.close()
        ruser = RadiusUser.objects.filter(username=username).first()
        if ruser is not None:
            close_active_sessions(ruser)
        request.user.log(
            do_type=UserProfileLogActionType.DISCONNECT_SESSION,
            additional_text='"%s" on "%s"' % (username, router.name)
        )
        return Response({
            'success': True,
            'disconnected': kicked
        })

    @action(detail=False, methods=['post'])
    def register_from_inventory(self, request):
        ser = serializers.RegisterFromInventorySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        dat = dict(ser.validated_data)
        items = InventoryItem.objects.all()
        if not request.user.is_superuser:
            items = items.filter(site=request.site)
        item = items.filter(pk=dat.pop('inventory_item_id')).first()
        if item is None:
            raise LogicError(_('Inventory item not found'))
        try:
            router = register_nas(inventory_item=item, data=dat, author=request.user)
        except IntegrityError as err:
            raise UniqueConstraintIntegrityError(str(err))
        return Response(self.get_serializer(router).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def reconcile_nas(self, request):
        site = None if request.user.is_superuser else request.site
        return Response(reconcile_nas_clients(site=site))
