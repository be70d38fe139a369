from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from decimal import Decimal
import datetime

from .models import EntryStatus


class BorrowerSchema(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    national_id: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9\-]+$")

    model_config = ConfigDict(from_attributes=True)


class EntryBase(BaseModel):
    address: str = Field(..., min_length=1)
    island: str = Field(..., min_length=1, max_length=120)
    branch: str = Field(..., min_length=1, max_length=120)
    form_number: str = Field(..., pattern=r"^\d{1,5}/\d{4}$", description="e.g. 41/2025")
    agreement_number: str = Field(..., min_length=1, max_length=50)
    agreement_date: datetime.date
    status: EntryStatus
    loan_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    date_of_cancelled: Optional[datetime.date] = None
    date_of_completed: Optional[datetime.date] = None


class EntryCreateSchema(EntryBase):
    number: Optional[int] = Field(None, gt=0, description="Defaults to the next free registry number")
    borrowers: List[BorrowerSchema] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_status_dates(self) -> "EntryCreateSchema":
        if self.status == EntryStatus.CANCELLED:
            if self.date_of_cancelled is None:
                raise ValueError("date_of_cancelled is required when status is CANCELLED")
        elif self.date_of_cancelled is not None:
            raise ValueError("date_of_cancelled must be empty unless status is CANCELLED")

        if self.status == EntryStatus.COMPLETED:
            if self.date_of_completed is None:
                raise ValueError("date_of_completed is required when status is COMPLETED")
        elif self.date_of_completed is not None:
            raise ValueError("date_of_completed must be empty unless status is COMPLETED")
        return self


class EntryUpdateSchema(EntryCreateSchema):
    """Replaces an entry and its borrowers. Without `number` the entry keeps its own."""


class EntryPublicSchema(EntryBase):
    public_id: str
    number: int
    borrowers: List[BorrowerSchema]
    is_deleted: bool
    deleted_at: Optional[datetime.datetime] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class NextNumberResponse(BaseModel):
    next_number: int
