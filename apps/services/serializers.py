from rest_framework import serializers

from ispdesk.lib.mixins import BaseCustomModelSerializer
from services.models import Service


class ServiceModelSerializer(BaseCustomModelSerializer):
    rate_limit = serializers.CharField(read_only=True)
    usercount = serializers.IntegerField(read_only=True)

    class Meta:
        model = Service
        exclude = ('sites',)
