import json

from django.conf import settings
from django.contrib.sites.middleware import CurrentSiteMiddleware
from django.contrib.sites.models import Site
from django.core.exceptions import ImproperlyConfigured
from django.http import JsonResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.serializers import ModelSerializer
from drf_queryfields import QueryFieldsMixin

from ispdesk.lib import check_sign, check_subnet


class JsonResponseForbidden(JsonResponse):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, data, **kwargs):
        new_dat = {"success": False, "error": data}
        super().__init__(data=new_dat, **kwargs)


class JsonResponseBadRequest(JsonResponseForbidden):
    status_code = status.HTTP_400_BAD_REQUEST


class HashAuthViewMixin:
    """
    Machine to machine access. Caller signs request values
    (query string for GET, json body for other methods) and
    passes the sign in the "Api-Auth-Sign" header.
    """

    def __init__(self, *args, **kwargs):
        api_auth_secret = getattr(settings, "API_AUTH_SECRET", None)
        if api_auth_secret is None or api_auth_secret == "your api secret":
            raise ImproperlyConfigured("You must specified API_AUTH_SECRET in settings")
        super().__init__(*args, **kwargs)

    def dispatch(self, request, *args, **kwargs):
        sign = request.headers.get("Api-Auth-Sign")
        if not sign:
            return JsonResponseForbidden("Access Denied!")
        if request.method == "GET":
            values = request.GET.dict()
        else:
            values = self.parse_signed_body(request)
            if values is None:
                return JsonResponseBadRequest("Bad json body")
        if check_sign(values, sign):
            return super().dispatch(request, *args, **kwargs)
        return JsonResponseForbidden("Access Denied")

    @staticmethod
    def parse_signed_body(request):
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        return data


class AllowedSubnetMixin:
    def dispatch(self, request, *args, **kwargs):
        """
        Check if user ip in allowed subnet.
        Return 403 denied otherwise.
        """
        try:
            check_subnet(request.META)
        except ValueError:
            return JsonResponseForbidden("Bad Subnet")
        return super().dispatch(request, *args, **kwargs)


class SecureApiViewMixin(AllowedSubnetMixin, HashAuthViewMixin):
    permission_classes = [AllowAny]
    authentication_classes = []


class BaseCustomModelSerializer(QueryFieldsMixin, ModelSerializer):
    pass


class SitesFilterMixin:
    """
    Can use only if model has field sites
    sites = models.ManyToManyField(Site)
    """

    def get_queryset(self):
        qs = super().get_queryset()
        if self.request.user.is_superuser:
            return qs
        return qs.filter(sites__in=[self.request.site])


class SiteFilterMixin:
    """
    Can use only if model has field site
    site = models.ForeignKey(Site)
    """

    def get_queryset(self):
        qs = super().get_queryset()
        if self.request.user.is_superuser:
            return qs
        return qs.filter(site=self.request.site)


class CustomCurrentSiteMiddleware(CurrentSiteMiddleware):
    def process_request(self, request):
        try:
            return super().process_request(request=request)
        except Site.DoesNotExist:
            return JsonResponseBadRequest("Bad Request (400). Unknown site.")
