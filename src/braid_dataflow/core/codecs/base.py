"""
Codecs canônicos para os tipos de elemento suportados nativamente.

- Utf8Codec   → str
- VarIntCodec → int (zigzag + varint, sem limite de magnitude)
- DoubleCodec → float (IEEE 754, big-endian)
- BytesCodec  → bytes
- KvCodec     → KV(key, value), composto a partir de dois codecs

Codecs são stateless e comparáveis por valor: dois Utf8Codec() são iguais.
"""

from __future__ import annotations

import struct
from typing import Any, NamedTuple, Protocol, Tuple, runtime_checkable


class KV(NamedTuple):
    """Par chave-valor usado por saídas agrupadas e views de mapeamento."""

    key: Any
    value: Any


@runtime_checkable
class Codec(Protocol):
    """Contrato mínimo de serialização de elementos."""

    def encode(self, element: Any) -> bytes:
        ...

    def decode(self, data: bytes) -> Any:
        ...


class _StatelessCodec:
    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Utf8Codec(_StatelessCodec):
    def encode(self, element: str) -> bytes:
        if not isinstance(element, str):
            raise TypeError(f"Utf8Codec expects str, got {type(element).__name__}")
        return element.encode("utf-8")

    def decode(self, data: bytes) -> str:
        return data.decode("utf-8")


class BytesCodec(_StatelessCodec):
    def encode(self, element: bytes) -> bytes:
        return bytes(element)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class DoubleCodec(_StatelessCodec):
    _FORMAT = ">d"

    def encode(self, element: float) -> bytes:
        return struct.pack(self._FORMAT, float(element))

    def decode(self, data: bytes) -> float:
        return struct.unpack(self._FORMAT, data)[0]


def _write_varint(value: int) -> bytes:
    """Varint sem sinal (7 bits por byte, bit alto = continuação)."""
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _read_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise ValueError("truncated varint")
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, offset
        shift += 7


class VarIntCodec(_StatelessCodec):
    """Inteiros com sinal em zigzag + varint."""

    def encode(self, element: int) -> bytes:
        if isinstance(element, bool) or not isinstance(element, int):
            raise TypeError(f"VarIntCodec expects int, got {type(element).__name__}")
        zigzag = element * 2 if element >= 0 else -element * 2 - 1
        return _write_varint(zigzag)

    def decode(self, data: bytes) -> int:
        zigzag, end = _read_varint(data)
        if end != len(data):
            raise ValueError("trailing bytes after varint")
        return zigzag // 2 if zigzag % 2 == 0 else -(zigzag + 1) // 2


class KvCodec:
    """KV(key, value) com prefixo de tamanho (varint) para a chave."""

    def __init__(self, key_codec: Codec, value_codec: Codec):
        self.key_codec = key_codec
        self.value_codec = value_codec

    def encode(self, element: Any) -> bytes:
        key, value = element
        key_bytes = self.key_codec.encode(key)
        return _write_varint(len(key_bytes)) + key_bytes + self.value_codec.encode(value)

    def decode(self, data: bytes) -> KV:
        key_len, offset = _read_varint(data)
        key = self.key_codec.decode(data[offset:offset + key_len])
        value = self.value_codec.decode(data[offset + key_len:])
        return KV(key, value)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, KvCodec)
            and self.key_codec == other.key_codec
            and self.value_codec == other.value_codec
        )

    def __hash__(self) -> int:
        return hash((KvCodec, self.key_codec, self.value_codec))

    def __repr__(self) -> str:
        return f"KvCodec({self.key_codec!r}, {self.value_codec!r})"
