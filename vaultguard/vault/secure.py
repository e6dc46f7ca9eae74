"""
Secure key holder — session key material with explicit zeroization.

Security Note:
    Python cannot guarantee that no copy of a secret survives in memory:
    ``expose()`` hands out an immutable ``bytes`` copy for the duration of
    one cipher call. What this class does guarantee is that its own buffer
    is overwritten the moment ``zeroize()`` runs, that ``zeroize()`` runs on
    lock, destroy, context exit and garbage collection, and that a released
    key can never be used again.
"""
from ..exceptions import KeyReleasedError


class SecretKey:
    """Mutable buffer holding raw key bytes until zeroized."""

    __slots__ = ("_data", "_length", "_released", "__weakref__")

    def __init__(self, data: bytes | bytearray):
        self._length = len(data)
        self._data = bytearray(data)
        self._released = False
        if isinstance(data, bytearray):
            # caller's mutable copy is no longer needed
            data[:] = bytes(len(data))

    def expose(self) -> bytes:
        """Return the key bytes for immediate use by a cipher."""
        if self._released:
            raise KeyReleasedError("Key material has been released")
        return bytes(self._data)

    def zeroize(self) -> None:
        """Overwrite the buffer with zeros. Safe to call repeatedly."""
        if self._released:
            return
        # same-length slice assignment overwrites in place
        self._data[:] = bytes(self._length)
        self._released = True

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self) -> "SecretKey":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.zeroize()

    def __del__(self):
        try:
            self.zeroize()
        except AttributeError:
            # __init__ never completed
            pass

    def __len__(self) -> int:
        return self._length

    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"<SecretKey len={self._length} released={self._released}>"
