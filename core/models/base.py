import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class TimeStampedModel(models.Model):
    """
    Adds created_at / updated_at fields.
    Use this for almost all models.
    """
    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name=_("Created at"),
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name=_("Updated at"),
    )

    class Meta:
        abstract = True


class UserStampedModel(models.Model):
    """
    Adds created_by / updated_by fields.
    Filled by views (UserStampedMixin) or by the services that receive a user.
    """
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="%(app_label)s_%(class)s_created",
        verbose_name=_("Created by"),
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="%(app_label)s_%(class)s_updated",
        verbose_name=_("Updated by"),
    )

    class Meta:
        abstract = True

    def stamp(self, user=None) -> None:
        """Set created_by (first save only) and updated_by from an authenticated user."""
        if user is None or not getattr(user, "is_authenticated", False):
            return
        if not self.pk:
            self.created_by = user
        self.updated_by = user


class BaseModel(TimeStampedModel, UserStampedModel):
    """
    Base model for the pharmacy stock apps:

    - public_id (UUID) for URLs shared outside the app and for exports
    - created_at / updated_at
    - created_by / updated_by

    Note:
    - Records are hard-deleted. Stock is derived from the rows that exist,
      so a deleted medicine must take its entries and expedition lines with it.
    - We do NOT replace the default integer `id` field.
    """
    public_id = models.UUIDField(
        default=uuid.uuid4,
        unique=True,
        editable=False,
        db_index=True,
        verbose_name=_("Public ID (UUID)"),
    )

    class Meta:
        abstract = True
