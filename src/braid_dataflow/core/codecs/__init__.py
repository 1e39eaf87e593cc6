"""
Codecs do Braid DataFlow.

Um codec serializa elementos sempre que dados atravessam uma fronteira de
partição (shuffle do grouped count, coleta e publicação de views,
estimador de distintos).

Contrato:
    - encode(element) -> bytes
    - decode(bytes) -> element
    - decode(encode(x)) == x para todo elemento mantido em uma coleção
"""

from .base import (
    KV,
    BytesCodec,
    Codec,
    DoubleCodec,
    KvCodec,
    Utf8Codec,
    VarIntCodec,
)
from .registry import CodecRegistry, default_registry

__all__ = [
    "KV",
    "Codec",
    "Utf8Codec",
    "VarIntCodec",
    "DoubleCodec",
    "BytesCodec",
    "KvCodec",
    "CodecRegistry",
    "default_registry",
]
