from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileRole(str, Enum):
    """Role of an uploaded file inside one HOA's group."""
    APARTMENTS = "apartments"
    CHARGES = "charges"
    NOTIFICATIONS = "notifications"
    PAYMENTS = "payments"


class UploadedFile(BaseModel):
    """A file as delivered by an upload transport: logical name plus raw bytes."""
    name: str
    content: bytes

    model_config = ConfigDict(frozen=True)


class ImportFileGroup(BaseModel):
    """At most one file per role for one HOA."""
    apartments_file: Optional[UploadedFile] = None
    charges_file: Optional[UploadedFile] = None
    notifications_file: Optional[UploadedFile] = None
    payments_file: Optional[UploadedFile] = None

    def set_file(self, role: FileRole, file: UploadedFile) -> None:
        setattr(self, f"{role.value}_file", file)


class EntityStats(BaseModel):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    deleted: int = 0
    total: int = 0


class HOAImportResult(BaseModel):
    hoa_id: str = Field(alias="hoaId")
    apartments: EntityStats = Field(default_factory=EntityStats)
    charges: Optional[EntityStats] = None
    notifications: Optional[EntityStats] = None
    payments: Optional[EntityStats] = None
    errors: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class ImportErrorDetail(BaseModel):
    """An error scoped to an uploaded file, to an HOA, or to both."""
    hoa_id: Optional[str] = Field(default=None, alias="hoaId")
    file: Optional[str] = None
    error: str

    model_config = ConfigDict(populate_by_name=True)


class BatchImportResult(BaseModel):
    success: bool
    results: List[HOAImportResult] = Field(default_factory=list)
    errors: List[ImportErrorDetail] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def to_response_body(self) -> dict:
        """Serialize using the camelCase contract, omitting absent entity stats."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
