from django.contrib.sites.models import Site
from django.db import models


class BaseAbstractModel(models.Model):
    class Meta:
        abstract = True


class SiteOwnedModel(BaseAbstractModel):
    """Model that belongs to a single tenant site"""

    site = models.ForeignKey(Site, on_delete=models.CASCADE, blank=True, null=True, default=None)

    class Meta:
        abstract = True
