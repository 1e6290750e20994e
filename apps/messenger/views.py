from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated, IsAdminUser

from ispdesk.lib.mixins import SiteFilterMixin
from ispdesk.viewsets import IspModelViewSet, IspReadOnlyModelViewSet
from messenger.models import SmsTemplate, SmsMessage
from messenger import serializers
from messenger.tasks import send_bulk_sms


class SmsTemplateModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = SmsTemplate.objects.all()
    serializer_class = serializers.SmsTemplateModelSerializer
    filterset_fields = ('template_key', 'is_active')

    @action(detail=True, methods=['post'])
    def preview(self, request, pk=None):
        template = self.get_object()
        ser = serializers.TemplatePreviewSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return Response({
            'text': template.render(ser.validated_data.get('variables'))
        })


class SmsMessageReadOnlyViewSet(SiteFilterMixin, IspReadOnlyModelViewSet):
    queryset = SmsMessage.objects.all()
    serializer_class = serializers.SmsMessageModelSerializer
    filterset_fields = ('status', 'recipient', 'template_key')


class BulkSmsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    def post(self, request, *args, **kwargs):
        ser = serializers.BulkSmsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        dat = ser.validated_data
        res = send_bulk_sms(
            site=request.site,
            template_key=dat['template_key'],
            recipients=dat['recipients'],
            variables=dat.get('variables')
        )
        return Response(res, status=status.HTTP_200_OK)
