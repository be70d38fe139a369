"""Abstract model mixins and id helpers shared by every feature.

Rows are exposed through KSUID public ids (K-Sortable Unique IDentifiers,
time-ordered and URL safe) instead of their integer primary keys."""

import datetime

from tortoise import fields, models
from ksuid import ksuid


def generate_ksuid():
    """Returns a new KSUID as its 27-character string form."""
    return str(ksuid.Ksuid())


class TimestampMixin(models.Model):
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True


class SoftDeleteMixin(models.Model):
    """Rows are flagged instead of removed, so they can be restored later."""
    is_deleted = fields.BooleanField(default=False, db_index=True)
    deleted_at = fields.DatetimeField(null=True, default=None)

    SOFT_DELETE_FIELDS = ["is_deleted", "deleted_at"]

    def mark_deleted(self) -> None:
        self.is_deleted = True
        self.deleted_at = datetime.datetime.now(datetime.timezone.utc)

    def mark_restored(self) -> None:
        self.is_deleted = False
        self.deleted_at = None

    class Meta:
        abstract = True
