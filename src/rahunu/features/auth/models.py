"""User accounts and the roles that gate access to the registry."""

from enum import Enum

from tortoise import fields

from rahunu.common.models import TimestampMixin, generate_ksuid


class Role(str, Enum):
    ADMIN = "ADMIN"            # everything, including user management and restores
    DATA_ENTRY = "DATA_ENTRY"  # creates and deletes entries
    VIEWER = "VIEWER"          # read-only, reports included


class User(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(max_length=27, unique=True, default=generate_ksuid, db_index=True)
    username = fields.CharField(max_length=100, unique=True, db_index=True)
    email = fields.CharField(max_length=255, unique=True, db_index=True)
    full_name = fields.CharField(max_length=120, null=True)
    hashed_password = fields.CharField(max_length=255)
    role = fields.CharEnumField(Role, max_length=20, default=Role.VIEWER)
    is_active = fields.BooleanField(default=True)

    created_entries: fields.ReverseRelation["RegistryEntry"]
    updated_entries: fields.ReverseRelation["RegistryEntry"]

    def __str__(self):
        return f"{self.username} ({self.role.value})"

    class Meta:
        table = "users"
        ordering = ["username"]
