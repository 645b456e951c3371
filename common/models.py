from django.db import models
from django.utils.translation import gettext_lazy as _

from model_utils.fields import AutoCreatedField, AutoLastModifiedField


class BaseModel(models.Model):
    """
    Abstract base for every concrete model of the project: indexed timestamps plus a free-form
    `meta` JSON column.

    `created` and `modified` are maintained by django-model-utils on `save()`. Writes that
    bypass `save()` (`QuerySet.update()`, `bulk_create(update_conflicts=True)`) must set
    `modified` explicitly.
    """

    created = AutoCreatedField(_("created"), db_index=True)
    modified = AutoLastModifiedField(_("modified"), db_index=True)
    meta = models.JSONField(_("meta"), default=dict, blank=True)

    class Meta:
        abstract = True
        get_latest_by = "created"
