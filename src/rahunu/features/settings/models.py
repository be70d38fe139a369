"""Reference data behind the entry form dropdowns (islands, bank branches, ...)."""

from enum import Enum

from tortoise import fields

from ...common.models import TimestampMixin, generate_ksuid


class SettingCategory(str, Enum):
    ISLAND = "ISLAND"
    BANK_BRANCH = "BANK_BRANCH"
    REGION = "REGION"
    DOCUMENT_TYPE = "DOCUMENT_TYPE"


class SystemSetting(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    category = fields.CharEnumField(SettingCategory, max_length=20, db_index=True)
    value = fields.CharField(max_length=120)
    display_name = fields.CharField(max_length=120, null=True)
    is_active = fields.BooleanField(default=True)
    sort_order = fields.IntField(default=0)

    def __str__(self):
        return f"{self.category.value}: {self.value}"

    class Meta:
        table = "system_settings"
        unique_together = (("category", "value"),)
        ordering = ["sort_order", "value"]
