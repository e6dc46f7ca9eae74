"""
Vault Store — the persistence boundary.

The engine only needs get/set/remove of one named opaque string. Each
``set`` must replace the previous value completely or not at all.
"""
import os
import re
import logging
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger("vaultguard.vault")

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


@runtime_checkable
class BlobStore(Protocol):
    """Named opaque string storage."""

    def get(self, name: str) -> Optional[str]:
        ...

    def set(self, name: str, value: str) -> None:
        ...

    def remove(self, name: str) -> None:
        ...


class MemoryStore:
    """Dict-backed store, used as a test double and for ephemeral vaults."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, name: str) -> Optional[str]:
        return self._blobs.get(name)

    def set(self, name: str, value: str) -> None:
        self._blobs[name] = value

    def remove(self, name: str) -> None:
        self._blobs.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._blobs

    def __repr__(self) -> str:
        return f"<MemoryStore names={sorted(self._blobs)}>"


class FileStore:
    """One file per name inside ``directory``, replaced atomically.

    Writes go to a ``.tmp`` sibling (mode 600), are fsynced, then
    ``os.replace``d over the target, so a crash leaves either the old or
    the new blob.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        if not _NAME_PATTERN.match(name):
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.directory / name

    def get(self, name: str) -> Optional[str]:
        try:
            return self._path(name).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, name: str, value: str) -> None:
        path = self._path(name)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except Exception:
            # Clean up temp file on failure
            if tmp_path.exists():
                tmp_path.unlink()
            raise
        logger.debug("Blob written: %s", path)

    def remove(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"<FileStore directory={str(self.directory)!r}>"
