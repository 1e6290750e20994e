from django.db.models import Count

from ispdesk.lib.mixins import SitesFilterMixin
from ispdesk.viewsets import IspModelViewSet
from profiles.models import UserProfileLogActionType
from services.models import Service
from services.serializers import ServiceModelSerializer


class ServiceModelViewSet(SitesFilterMixin, IspModelViewSet):
    queryset = Service.objects.annotate(usercount=Count('customer'))
    serializer_class = ServiceModelSerializer
    filterset_fields = ('is_active',)

    def perform_create(self, serializer, **kwargs):
        service = super().perform_create(serializer=serializer, **kwargs)
        self.request.user.log(
            do_type=UserProfileLogActionType.CREATE_SERVICE,
            additional_text='"%(title)s", %(cost)s' % {
                'title': service.title,
                'cost': service.cost,
            }
        )
        return service

    def perform_destroy(self, instance):
        self.request.user.log(
            do_type=UserProfileLogActionType.DELETE_SERVICE,
            additional_text='"%(title)s", %(cost)s' % {
                'title': instance.title,
                'cost': instance.cost,
            }
        )
        return super().perform_destroy(instance)
