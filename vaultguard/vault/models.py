"""
Vault Models — Credential records and the decrypted vault contents.

The JSON shape produced by ``model_dump(by_alias=True)`` is the plaintext
that gets sealed::

    {"entries": [{"id": ..., "title": ..., "username": ..., "password": ...,
                  "url": ..., "notes": ..., "category": "Login",
                  "createdAt": 1700000000000, "updatedAt": 1700000000000}],
     "version": 1}

Security Note:
    ``VaultContents`` only exists in memory while a vault is unlocked.
    Never log record secrets.
"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import SCHEMA_VERSION


class Category(str, Enum):
    LOGIN = "Login"
    FINANCE = "Finance"
    SOCIAL = "Social"
    EMAIL = "Email"
    WORK = "Work"
    OTHER = "Other"


class CredentialRecord(BaseModel):
    """A single stored credential. Identity is ``id``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(min_length=1)
    title: str
    username: str = ""
    secret: str = Field(default="", alias="password")
    url: str = ""
    notes: str = ""
    category: Category = Category.LOGIN
    created_at: int
    updated_at: int

    def __repr__(self) -> str:
        return (
            f"<CredentialRecord id={self.id!r} title={self.title!r} "
            f"category={self.category.value}>"
        )

    __str__ = __repr__

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title, username and url."""
        if not query:
            return True
        q = query.lower()
        return (
            q in self.title.lower()
            or q in self.username.lower()
            or q in self.url.lower()
        )


class VaultContents(BaseModel):
    """Ordered credential collection, most recently added first."""

    model_config = ConfigDict(populate_by_name=True)

    entries: list[CredentialRecord] = Field(default_factory=list)
    schema_version: int = Field(default=SCHEMA_VERSION, alias="version", ge=1)

    def __len__(self) -> int:
        return len(self.entries)

    def _index(self, record_id: str) -> int:
        for idx, record in enumerate(self.entries):
            if record.id == record_id:
                return idx
        raise KeyError(record_id)

    def get(self, record_id: str) -> Optional[CredentialRecord]:
        try:
            return self.entries[self._index(record_id)]
        except KeyError:
            return None

    def add(self, record: CredentialRecord) -> CredentialRecord:
        """Insert a new record at the front.

        Raises:
            ValueError: If a record with the same id is already present.
        """
        if self.get(record.id) is not None:
            raise ValueError(f"Record id {record.id!r} already exists")
        self.entries.insert(0, record)
        return record

    def upsert(self, record: CredentialRecord, now: int) -> CredentialRecord:
        """Replace the record with the same id in place, or add it."""
        record.updated_at = now
        try:
            self.entries[self._index(record.id)] = record
        except KeyError:
            self.entries.insert(0, record)
        return record

    def update(self, record_id: str, now: int, **changes: Any) -> CredentialRecord:
        """Edit fields of an existing record and refresh ``updated_at``.

        The edited record is validated as a whole before it replaces the
        stored one, so a rejected change leaves the entry untouched.

        Raises:
            KeyError: If no record has ``record_id``.
            ValueError: If ``id`` or ``created_at`` is in ``changes``, or a
                name is not a record field.
            ValidationError: If a new value is invalid.
        """
        if {"id", "created_at"} & changes.keys():
            raise ValueError("Record id and creation time are immutable")
        unknown = changes.keys() - CredentialRecord.model_fields.keys()
        if unknown:
            raise ValueError(f"Unknown record fields: {sorted(unknown)}")
        idx = self._index(record_id)
        edited = CredentialRecord.model_validate(
            {**self.entries[idx].model_dump(), **changes, "updated_at": now}
        )
        self.entries[idx] = edited
        return edited

    def remove(self, record_id: str) -> CredentialRecord:
        """Delete by id and return the removed record.

        Raises:
            KeyError: If no record has ``record_id``.
        """
        return self.entries.pop(self._index(record_id))

    def search(
        self,
        query: str = "",
        category: Optional[Category | str] = None,
    ) -> list[CredentialRecord]:
        """Filter entries by text query and, optionally, exact category."""
        if category is not None:
            category = Category(category)
        return [
            record for record in self.entries
            if record.matches(query)
            and (category is None or record.category == category)
        ]

    def category_counts(self) -> dict[Category, int]:
        """Counts per category, in fixed category order, omitting zeros."""
        counts = {}
        for category in Category:
            count = sum(1 for record in self.entries if record.category == category)
            if count:
                counts[category] = count
        return counts
