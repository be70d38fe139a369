"""Audit trail for every mutating action in the registry."""

from enum import Enum

from tortoise import fields, models

from rahunu.common.models import generate_ksuid


class AuditAction(str, Enum):
    USER_CREATED = "USER_CREATED"
    USER_ROLE_CHANGED = "USER_ROLE_CHANGED"
    USER_PASSWORD_RESET = "USER_PASSWORD_RESET"
    USER_STATUS_CHANGED = "USER_STATUS_CHANGED"
    USER_SIGNED_IN = "USER_SIGNED_IN"
    ENTRY_CREATED = "ENTRY_CREATED"
    ENTRY_UPDATED = "ENTRY_UPDATED"
    ENTRY_DELETED = "ENTRY_DELETED"
    ENTRY_RESTORED = "ENTRY_RESTORED"
    ENTRY_VIEWED = "ENTRY_VIEWED"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"


class AuditLog(models.Model):  # Append-only, no TimestampMixin
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    action = fields.CharEnumField(AuditAction, max_length=40, db_index=True)

    actor: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="audit_actions", on_delete=fields.SET_NULL, null=True
    )
    target_user: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="audit_targets", on_delete=fields.SET_NULL, null=True
    )
    target_entry: fields.ForeignKeyNullableRelation["RegistryEntry"] = fields.ForeignKeyField(
        "models.RegistryEntry", related_name="audit_logs", on_delete=fields.SET_NULL, null=True
    )

    details = fields.JSONField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action.value} at {self.created_at}"

    class Meta:
        table = "audit_logs"
        ordering = ["-created_at"]
