from django.db import transaction
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import MethodNotAllowed
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from customers.models import Customer
from ispdesk.exceptions import ProcessIsBusy
from ispdesk.lib import LogicError, ProcessLocked
from ispdesk.lib.process_lock import process_lock_cm
from ispdesk.lib.logger import logger
from ispdesk.lib.mixins import SiteFilterMixin, SecureApiViewMixin
from ispdesk.viewsets import IspModelViewSet, IspReadOnlyModelViewSet
from profiles.models import UserProfileLogActionType
from radiusapp import serializers
from radiusapp.credentials import generate_credentials, bulk_generate_credentials, client_status_report
from radiusapp.health import run_health_checks
from radiusapp.hooks import RadiusHookError, process_coa_event, process_sync_callback, process_accounting
from radiusapp.models import (
    RadiusGroup, RadiusServer, NasClient, RadiusUser,
    RadiusSession, RadiusEvent, SystemTestResult
)
from radiusapp.session_control import disconnect_user
from radiusapp.tasks import (
    push_user_state_task, change_rate_limit_task, disconnect_user_task,
    reconcile_site, RECONCILE_LOCK_NAME
)


class RadiusGroupModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = RadiusGroup.objects.all()
    serializer_class = serializers.RadiusGroupModelSerializer
    filterset_fields = ('is_active', 'service')


class RadiusServerModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = RadiusServer.objects.all()
    serializer_class = serializers.RadiusServerModelSerializer
    filterset_fields = ('is_enabled', 'is_primary')


class NasClientModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = NasClient.objects.select_related('router')
    serializer_class = serializers.NasClientModelSerializer
    filterset_fields = ('nas_type', 'is_active', 'router')

    def perform_create(self, serializer, **kwargs):
        nas = super().perform_create(serializer=serializer, **kwargs)
        self.request.user.log(
            do_type=UserProfileLogActionType.CREATE_NAS,
            additional_text='"%s" %s' % (nas.shortname, nas.nas_ip)
        )
        return nas

    def perform_destroy(self, instance):
        self.request.user.log(
            do_type=UserProfileLogActionType.DELETE_NAS,
            additional_text='"%s" %s' % (instance.shortname, instance.nas_ip)
        )
        return super().perform_destroy(instance)


class RadiusUserModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = RadiusUser.objects.select_related('customer', 'group')
    serializer_class = serializers.RadiusUserModelSerializer
    filterset_fields = ('is_active', 'is_online', 'sync_status', 'group', 'customer')

    def create(self, request, *args, **kwargs):
        # Credentials are made by "generate" action
        raise MethodNotAllowed(request.method)

    def perform_update(self, serializer) -> None:
        old = serializer.instance
        was_active, old_limit = old.is_active, old.rate_limit()
        super().perform_update(serializer)
        ruser = serializer.instance
        ruser.mark_pending()
        ruser_id = ruser.pk
        transaction.on_commit(lambda: push_user_state_task.delay(ruser_id))
        if was_active and not ruser.is_active:
            transaction.on_commit(lambda: disconnect_user_task.delay(ruser_id))
        elif old_limit != ruser.rate_limit():
            transaction.on_commit(lambda: change_rate_limit_task.delay(ruser_id))

    def _customers(self):
        qs = Customer.objects.select_related('service', 'site')
        if self.request.user.is_superuser:
            return qs
        return qs.filter(site=self.request.site)

    @action(detail=False, methods=['post'])
    def generate(self, request):
        ser = serializers.GenerateCredentialsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        customer = self._customers().filter(pk=ser.validated_data['customer_id']).first()
        if customer is None:
            raise LogicError(_('Customer not found'))
        res = generate_credentials(customer, regenerate=ser.validated_data['regenerate'])
        request.user.log(
            do_type=UserProfileLogActionType.GENERATE_CREDENTIALS,
            additional_text='"%s": %s' % (customer.name, res['username'])
        )
        return Response({
            'success': True,
            'message': _('RADIUS credentials generated successfully'),
            'data': res,
        }, status=status.HTTP_201_CREATED if res['created'] else status.HTTP_200_OK)

    @action(detail=False, methods=['post'])
    def bulk_generate(self, request):
        site = None if request.user.is_superuser else request.site
        results = bulk_generate_credentials(site=site)
        return Response({
            'success': True,
            'message': _('Bulk generation completed for %d clients') % len(results),
            'data': results,
        })

    @action(detail=True, methods=['post'])
    def disconnect(self, request, pk=None):
        ruser = self.get_object()
        res = disconnect_user(ruser)
        request.user.log(
            do_type=UserProfileLogActionType.DISCONNECT_SESSION,
            additional_text='"%s" by %s' % (ruser.username, res['method'])
        )
        return Response(res)


class RadiusSessionReadOnlyViewSet(IspReadOnlyModelViewSet):
    queryset = RadiusSession.objects.select_related('user', 'router')
    serializer_class = serializers.RadiusSessionModelSerializer
    filterset_fields = ('status', 'user', 'customer', 'router', 'username')

    def get_queryset(self):
        qs = super().get_queryset()
        if self.request.user.is_superuser:
            return qs
        return qs.filter(customer__site=self.request.site)


class RadiusEventReadOnlyViewSet(SiteFilterMixin, IspReadOnlyModelViewSet):
    queryset = RadiusEvent.objects.all()
    serializer_class = serializers.RadiusEventModelSerializer
    filterset_fields = ('action', 'success', 'user', 'customer')


class SystemTestResultReadOnlyViewSet(IspReadOnlyModelViewSet):
    queryset = SystemTestResult.objects.all()
    serializer_class = serializers.SystemTestResultModelSerializer
    filterset_fields = ('category', 'status')

    def get_queryset(self):
        return super().get_queryset().filter(site=self.request.site)

    @action(detail=False, methods=['post'])
    def run(self, request):
        res = run_health_checks(site=request.site)
        return Response({
            'passed': res['passed'],
            'failed': res['failed'],
            'results': self.get_serializer(res['results'], many=True).data,
        })


class ClientStatusView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    def get(self, request, *args, **kwargs):
        return Response({
            'success': True,
            'data': client_status_report(site=request.site),
        })


class ReconcileView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    def post(self, request, *args, **kwargs):
        try:
            with process_lock_cm(lock_name=RECONCILE_LOCK_NAME):
                res = reconcile_site(request.site)
        except ProcessLocked:
            raise ProcessIsBusy(_('Reconciliation is already running'))
        return Response(res)


class _RadiusHookView(SecureApiViewMixin, APIView):
    success_message = ''

    def handle(self, data: dict) -> dict:
        raise NotImplementedError

    def post(self, request, *args, **kwargs):
        if not isinstance(request.data, dict):
            return Response({'success': False, 'error': 'Bad json body'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            res = self.handle(request.data)
        except RadiusHookError as err:
            logger.error('%s: %s' % (self.__class__.__name__, err))
            return Response({'success': False, 'error': str(err)}, status=err.status_code)
        return Response({
            'success': True,
            'message': self.success_message,
            'data': res,
        })


class CoaHookView(_RadiusHookView):
    success_message = 'CoA event processed'

    def handle(self, data: dict) -> dict:
        return process_coa_event(data)


class SyncHookView(_RadiusHookView):
    success_message = 'Sync callback processed successfully'

    def handle(self, data: dict) -> dict:
        return process_sync_callback(data)


class AccountingHookView(_RadiusHookView):
    success_message = 'RADIUS accounting record processed successfully'

    def handle(self, data: dict) -> dict:
        return process_accounting(data)
