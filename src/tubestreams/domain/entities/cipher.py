"""Signature cipher capability.

A ``CipherManifest`` is the resolved result of reading the platform's player
script: an ordered list of string operations that turn an obfuscated
signature into the one the CDN accepts. Reading the player script is done
elsewhere; this module only applies the operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union


class CipherOperation(Protocol):
    def decipher(self, value: str) -> str: ...


@dataclass(frozen=True)
class ReverseOperation:
    def decipher(self, value: str) -> str:
        return value[::-1]


@dataclass(frozen=True)
class SwapOperation:
    """Swap the first character with the one at ``index`` (mod length)."""

    index: int

    def decipher(self, value: str) -> str:
        if not value:
            return value
        chars = list(value)
        pos = self.index % len(chars)
        chars[0], chars[pos] = chars[pos], chars[0]
        return "".join(chars)


@dataclass(frozen=True)
class SpliceOperation:
    """Drop the first ``index`` characters."""

    index: int

    def decipher(self, value: str) -> str:
        return value[self.index :]


AnyCipherOperation = Union[ReverseOperation, SwapOperation, SpliceOperation]


@dataclass(frozen=True)
class CipherManifest:
    signature_timestamp: str
    operations: tuple[AnyCipherOperation, ...]

    def decipher(self, signature: str) -> str:
        for operation in self.operations:
            signature = operation.decipher(signature)
        return signature
