from rest_framework import serializers

from ispdesk.lib.mixins import BaseCustomModelSerializer
from messenger.models import SmsTemplate, SmsMessage


class SmsTemplateModelSerializer(BaseCustomModelSerializer):
    placeholders = serializers.ListField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = SmsTemplate
        exclude = ('site',)


class SmsMessageModelSerializer(BaseCustomModelSerializer):
    status_text = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = SmsMessage
        exclude = ('site',)


class TemplatePreviewSerializer(serializers.Serializer):
    variables = serializers.DictField(required=False, default=dict)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class BulkSmsSerializer(serializers.Serializer):
    template_key = serializers.CharField(max_length=64)
    recipients = serializers.ListField(child=serializers.CharField(max_length=16), allow_empty=False)
    variables = serializers.DictField(required=False, default=dict)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass
