"""
Registro de codecs por tipo de elemento.

A resolução é exata por tipo (sem herança): `bool` não herda o codec de
`int`. Tipos compostos (ex.: KV) exigem codec explícito na coleção, que os
transforms do front end já fornecem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from .base import BytesCodec, Codec, DoubleCodec, Utf8Codec, VarIntCodec


@dataclass
class CodecRegistry:
    """Mapa `tipo -> codec` consultado na validação do grafo."""

    _codecs: Dict[type, Codec] = field(default_factory=dict, init=False, repr=False)

    def register(self, element_type: type, codec: Codec) -> None:
        if not isinstance(codec, Codec):
            raise TypeError(f"{codec!r} does not implement encode/decode")
        self._codecs[element_type] = codec

    def lookup(self, element_type: Optional[type]) -> Optional[Codec]:
        if element_type is None:
            return None
        return self._codecs.get(element_type)

    def has(self, element_type: type) -> bool:
        return element_type in self._codecs


def default_registry() -> CodecRegistry:
    registry = CodecRegistry()
    registry.register(str, Utf8Codec())
    registry.register(int, VarIntCodec())
    registry.register(float, DoubleCodec())
    registry.register(bytes, BytesCodec())
    return registry
