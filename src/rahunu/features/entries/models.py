"""Data models for the loan registry: RegistryEntry and its Borrowers."""

from enum import Enum

from tortoise import fields
from ...common.models import SoftDeleteMixin, TimestampMixin, generate_ksuid


class EntryStatus(str, Enum):
    ONGOING = "ONGOING"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class RegistryEntry(TimestampMixin, SoftDeleteMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    number = fields.IntField(unique=True, description="Registry sequence number")

    address = fields.TextField()
    island = fields.CharField(max_length=120, db_index=True)
    branch = fields.CharField(max_length=120, db_index=True)
    form_number = fields.CharField(max_length=20, description="Pattern: <n>/<year> e.g. 41/2025")
    agreement_number = fields.CharField(max_length=50)
    agreement_date = fields.DateField(db_index=True)
    status = fields.CharEnumField(EntryStatus, max_length=20, db_index=True)
    loan_amount = fields.DecimalField(max_digits=14, decimal_places=2)
    date_of_cancelled = fields.DateField(null=True)
    date_of_completed = fields.DateField(null=True)

    created_by: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="created_entries", on_delete=fields.SET_NULL, null=True
    )
    updated_by: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="updated_entries", on_delete=fields.SET_NULL, null=True
    )

    borrowers: fields.ReverseRelation["Borrower"]

    @classmethod
    async def next_number(cls, using_db=None) -> int:
        # Soft-deleted entries keep their number, so they are counted too.
        last_entry = await cls.all(using_db=using_db).order_by("-number").first()
        return last_entry.number + 1 if last_entry else 1

    def __str__(self):
        return f"Entry #{self.number} {self.agreement_number} - Status: {self.status.value}"

    class Meta:
        table = "registry_entries"


class Borrower(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    full_name = fields.CharField(max_length=255)
    national_id = fields.CharField(max_length=50, db_index=True)

    entry: fields.ForeignKeyRelation[RegistryEntry] = fields.ForeignKeyField(
        "models.RegistryEntry",
        related_name="borrowers",
        on_delete=fields.RESTRICT,
    )

    def __str__(self):
        return f"{self.full_name} ({self.national_id})"

    class Meta:
        table = "borrowers"
        ordering = ["id"]
