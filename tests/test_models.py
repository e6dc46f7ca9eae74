"""
Tests for credential records and vault contents.

Tests cover:
- Record construction, aliases and category validation
- Insertion order, upsert, in-place update, removal
- Search and category filtering
- Per-category counts
"""
import pytest
from pydantic import ValidationError

from vaultguard.vault.models import Category, CredentialRecord, VaultContents


def make_record(record_id, title="Site", **fields):
    fields.setdefault("created_at", 100)
    fields.setdefault("updated_at", 100)
    return CredentialRecord(id=record_id, title=title, **fields)


@pytest.fixture
def contents():
    vault = VaultContents()
    vault.add(make_record("a", "GitHub", username="octo", url="https://github.com",
                          category=Category.WORK))
    vault.add(make_record("b", "Chase", username="me", url="https://chase.com",
                          category=Category.FINANCE))
    vault.add(make_record("c", "Gmail", username="me@gmail.com",
                          url="https://mail.google.com", category=Category.EMAIL))
    return vault


class TestCredentialRecord:
    """Tests for CredentialRecord."""

    def test_defaults(self):
        record = make_record("x")
        assert record.username == ""
        assert record.secret == ""
        assert record.category is Category.LOGIN

    def test_populate_by_alias(self):
        """Test stored JSON names are accepted on input."""
        record = CredentialRecord.model_validate({
            "id": "x", "title": "t", "password": "pw",
            "createdAt": 1, "updatedAt": 2,
        })
        assert record.secret == "pw"
        assert record.created_at == 1

    def test_rejects_unknown_category(self):
        with pytest.raises(ValidationError):
            make_record("x", category="Gaming")

    def test_rejects_empty_id(self):
        with pytest.raises(ValidationError):
            make_record("")

    def test_repr_hides_secret(self):
        """Test repr and str never include the stored secret."""
        record = make_record("x", secret="hunter2")
        assert "hunter2" not in repr(record)
        assert "hunter2" not in str(record)


class TestVaultContents:
    """Tests for VaultContents operations."""

    def test_empty_by_default(self):
        contents = VaultContents()
        assert len(contents) == 0
        assert contents.schema_version == 1

    def test_add_prepends(self, contents):
        """Test most recently added record comes first."""
        assert [r.id for r in contents.entries] == ["c", "b", "a"]

    def test_add_rejects_duplicate_id(self, contents):
        with pytest.raises(ValueError, match="already exists"):
            contents.add(make_record("a"))

    def test_get(self, contents):
        assert contents.get("b").title == "Chase"
        assert contents.get("zzz") is None

    def test_update_in_place(self, contents):
        """Test update edits fields, keeps position and refreshes updated_at."""
        record = contents.update("b", 500, secret="n3w-Secret!", category="Other")
        assert record is contents.entries[1]
        assert record.secret == "n3w-Secret!"
        assert record.category is Category.OTHER
        assert record.updated_at == 500
        assert record.created_at == 100

    def test_update_unknown_id(self, contents):
        with pytest.raises(KeyError):
            contents.update("zzz", 500, title="x")

    def test_update_rejects_identity_changes(self, contents):
        with pytest.raises(ValueError, match="immutable"):
            contents.update("a", 500, id="other")

    def test_update_validates_values(self, contents):
        with pytest.raises(ValidationError):
            contents.update("a", 500, category="Gaming")

    def test_rejected_update_leaves_record_untouched(self, contents):
        """Test a change set with one invalid value applies nothing."""
        before = contents.get("a").model_copy()
        with pytest.raises(ValidationError):
            contents.update("a", 500, title="Renamed", category="Gaming")
        after = contents.get("a")
        assert after.title == before.title
        assert after.updated_at == before.updated_at
        assert after == before

    def test_update_unknown_field(self, contents):
        with pytest.raises(ValueError, match="Unknown record fields"):
            contents.update("a", 500, colour="blue")
        assert contents.get("a").updated_at != 500

    def test_upsert_replaces_existing(self, contents):
        """Test upsert with a known id replaces the record at its position."""
        replacement = make_record("b", "Chase Bank")
        contents.upsert(replacement, 900)
        assert [r.id for r in contents.entries] == ["c", "b", "a"]
        assert contents.get("b").title == "Chase Bank"
        assert contents.get("b").updated_at == 900

    def test_upsert_adds_new(self, contents):
        contents.upsert(make_record("d", "Netflix"), 900)
        assert contents.entries[0].id == "d"
        assert len(contents) == 4

    def test_remove(self, contents):
        removed = contents.remove("b")
        assert removed.title == "Chase"
        assert [r.id for r in contents.entries] == ["c", "a"]

    def test_remove_unknown(self, contents):
        with pytest.raises(KeyError):
            contents.remove("zzz")

    @pytest.mark.parametrize("query, expected", [
        ("", ["c", "b", "a"]),
        ("git", ["a"]),
        ("GMAIL", ["c"]),
        ("me", ["c", "b"]),
        ("chase.com", ["b"]),
        ("nothing", []),
    ])
    def test_search(self, contents, query, expected):
        """Test case-insensitive search over title, username and url."""
        assert [r.id for r in contents.search(query)] == expected

    def test_search_with_category(self, contents):
        """Test category filter combines with the text query."""
        assert [r.id for r in contents.search("me", Category.FINANCE)] == ["b"]
        assert [r.id for r in contents.search(category="Email")] == ["c"]
        assert contents.search(category=Category.SOCIAL) == []

    def test_category_counts(self, contents):
        """Test counts are in fixed order and omit empty categories."""
        contents.add(make_record("d", category=Category.FINANCE))
        counts = contents.category_counts()
        assert list(counts) == [Category.FINANCE, Category.EMAIL, Category.WORK]
        assert counts[Category.FINANCE] == 2
