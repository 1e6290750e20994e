from rest_framework.decorators import action
from rest_framework.response import Response

from ispdesk.lib.mixins import SitesFilterMixin
from ispdesk.viewsets import IspSuperUserModelViewSet, IspReadOnlyModelViewSet
from profiles.models import UserProfile, UserProfileLog
from profiles.serializers import UserProfileSerializer, UserProfileLogSerializer


class UserProfileViewSet(SitesFilterMixin, IspSuperUserModelViewSet):
    queryset = UserProfile.objects.all()
    serializer_class = UserProfileSerializer
    lookup_field = 'username'
    filterset_fields = ('is_active',)

    @action(detail=False)
    def current(self, request):
        ser = self.get_serializer(request.user)
        return Response(ser.data)


class UserProfileLogViewSet(IspReadOnlyModelViewSet):
    queryset = UserProfileLog.objects.select_related('account')
    serializer_class = UserProfileLogSerializer
    filterset_fields = ('account', 'do_type')
