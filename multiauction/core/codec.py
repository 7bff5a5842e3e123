"""
Binary codec for records and instruction payloads.

Layout rules (borsh-compatible):
- integers little-endian: u8, u64, i64
- bool as a single byte, 0 or 1
- fixed byte arrays written raw
- enum variants as a u8 discriminant followed by the variant's fields

Decoding is strict: out-of-range booleans, truncated input and trailing
bytes are errors. The caller chooses which error code a malformed buffer
maps to (instruction payloads vs stored records).
"""

from typing import List

from multiauction.core.errors import ErrorCode, error
from multiauction.utils.validation import I64_MAX, I64_MIN, U64_MAX, U8_MAX


class BorshWriter:
    """Append-only encoder."""

    def __init__(self):
        self._parts: List[bytes] = []

    def u8(self, value: int) -> "BorshWriter":
        if not (0 <= value <= U8_MAX):
            raise error(ErrorCode.MATH_OVERFLOW, f"u8 out of range: {value}")
        self._parts.append(value.to_bytes(1, "little"))
        return self

    def boolean(self, value: bool) -> "BorshWriter":
        self._parts.append(b"\x01" if value else b"\x00")
        return self

    def u64(self, value: int) -> "BorshWriter":
        if not (0 <= value <= U64_MAX):
            raise error(ErrorCode.MATH_OVERFLOW, f"u64 out of range: {value}")
        self._parts.append(value.to_bytes(8, "little"))
        return self

    def i64(self, value: int) -> "BorshWriter":
        if not (I64_MIN <= value <= I64_MAX):
            raise error(ErrorCode.MATH_OVERFLOW, f"i64 out of range: {value}")
        self._parts.append(value.to_bytes(8, "little", signed=True))
        return self

    def fixed(self, data: bytes, length: int) -> "BorshWriter":
        if len(data) != length:
            raise error(
                ErrorCode.INVALID_ACCOUNT_DATA,
                f"expected {length} bytes, got {len(data)}",
            )
        self._parts.append(bytes(data))
        return self

    def getvalue(self) -> bytes:
        return b"".join(self._parts)


class BorshReader:
    """Cursor over a buffer; every read is bounds-checked."""

    def __init__(self, data: bytes, error_code: ErrorCode = ErrorCode.INVALID_ACCOUNT_DATA):
        self._data = bytes(data)
        self._offset = 0
        self._error_code = error_code

    def _take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise error(
                self._error_code,
                f"truncated: need {size} bytes at offset {self._offset}, have {len(self._data) - self._offset}",
            )
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def u8(self) -> int:
        return self._take(1)[0]

    def boolean(self) -> bool:
        value = self.u8()
        if value > 1:
            raise error(self._error_code, f"invalid bool byte {value}")
        return value == 1

    def u64(self) -> int:
        return int.from_bytes(self._take(8), "little")

    def i64(self) -> int:
        return int.from_bytes(self._take(8), "little", signed=True)

    def fixed(self, length: int) -> bytes:
        return self._take(length)

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def finish(self, allow_padding: bool = False) -> None:
        """
        Reject trailing bytes.

        Stored records live in fixed-size accounts, so zero padding after
        the encoded fields is accepted when allow_padding is set.
        """
        if not self.remaining:
            return
        tail = self._data[self._offset:]
        if allow_padding and not any(tail):
            return
        raise error(self._error_code, f"{self.remaining} trailing bytes")

    def fail(self, detail: str):
        """Raise this reader's error code."""
        raise error(self._error_code, detail)
