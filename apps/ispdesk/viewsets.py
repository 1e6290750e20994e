from django.db import IntegrityError
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet, ReadOnlyModelViewSet
from rest_framework.permissions import IsAuthenticated, IsAdminUser

from ispdesk.exceptions import UniqueConstraintIntegrityError
from ispdesk.permissions import IsSuperUser


def _model_has_field(model, field_name: str) -> bool:
    return any(f.name == field_name for f in model._meta.get_fields())


class IspModelViewSet(ModelViewSet):

    def perform_create(self, serializer, **kwargs):
        model = serializer.Meta.model
        if 'site' not in kwargs and _model_has_field(model, 'site'):
            kwargs['site'] = getattr(self.request, 'site', None)
        try:
            inst = serializer.save(**kwargs)
        except IntegrityError as e:
            raise UniqueConstraintIntegrityError(str(e))
        if _model_has_field(model, 'sites') and getattr(self.request, 'site', None) is not None:
            inst.sites.add(self.request.site)
        return inst

    def perform_update(self, serializer) -> None:
        try:
            super().perform_update(serializer)
        except IntegrityError as e:
            raise UniqueConstraintIntegrityError(str(e))

    def perform_destroy(self, instance) -> None:
        try:
            super().perform_destroy(instance)
        except IntegrityError as e:
            raise UniqueConstraintIntegrityError(str(e))

    @action(detail=False)
    def get_initial(self, request):
        serializer = self.get_serializer()
        return Response(serializer.get_initial())


class IspSuperUserModelViewSet(IspModelViewSet):
    permission_classes = [IsAuthenticated, IsAdminUser, IsSuperUser]


class IspReadOnlyModelViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, IsAdminUser]
