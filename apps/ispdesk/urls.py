from django.urls import path, include
from django.conf import settings


api_urls = [
    path("profiles/", include("profiles.urls", namespace="profiles")),
    path("services/", include("services.urls", namespace="services")),
    path("customers/", include("customers.urls", namespace="customers")),
    path("inventory/", include("inventory.urls", namespace="inventory")),
    path("fin/", include("fin_app.urls", namespace="fin_app")),
    path("messenger/", include("messenger.urls", namespace="messenger")),
    path("gateways/", include("gateways.urls", namespace="gateways")),
    path("devices/", include("devices.urls", namespace="devices")),
    path("radius/", include("radiusapp.urls", namespace="radiusapp")),
]


urlpatterns = [
    path("api/", include(api_urls)),
]


if settings.DEBUG:
    from django.contrib.staticfiles.urls import staticfiles_urlpatterns
    from django.contrib import admin

    urlpatterns.extend(staticfiles_urlpatterns())
    urlpatterns.append(path("admin/", admin.site.urls))
    urlpatterns.append(path("api-auth/", include("rest_framework.urls")))
