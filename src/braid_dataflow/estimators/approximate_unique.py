"""
Estimativa aproximada de elementos distintos (bottom-k / KMV).

Cada elemento é codificado pelo codec da coleção e mapeado para um hash
uniforme de 64 bits (SHA-256 truncado). O sketch guarda os `sample_size`
menores hashes distintos:

    - enquanto nenhum hash distinto ficou fora da amostra (até
      `sample_size` distintos), a contagem é exata
    - caso contrário, estimativa = (k - 1) / U_k, onde U_k é o k-ésimo
      menor hash normalizado em [0, 1)

Sketches de partições diferentes se combinam por união seguida de corte,
operação comutativa e associativa.
"""

from __future__ import annotations

import hashlib
import heapq
from typing import Any, Iterable, List, Optional, Set

from braid_dataflow.core.codecs import Codec


_HASH_SPACE = 2 ** 64
MIN_SAMPLE_SIZE = 16


def _hash64(data: bytes) -> int:
    return int.from_bytes(hashlib.sha256(data).digest()[:8], "big")


class BottomKSketch:
    def __init__(self, sample_size: int):
        if sample_size < MIN_SAMPLE_SIZE:
            raise ValueError(f"sample_size must be >= {MIN_SAMPLE_SIZE}, got {sample_size}")
        self.sample_size = sample_size
        # max-heap (valores negados) com os menores hashes vistos
        self._heap: List[int] = []
        self._members: Set[int] = set()
        # True quando algum hash distinto ficou fora da amostra
        self.saturated = False

    def add_hash(self, h: int) -> None:
        if h in self._members:
            return
        if len(self._heap) < self.sample_size:
            heapq.heappush(self._heap, -h)
            self._members.add(h)
            return
        self.saturated = True
        if h < -self._heap[0]:
            evicted = -heapq.heapreplace(self._heap, -h)
            self._members.discard(evicted)
            self._members.add(h)

    def merge(self, other: "BottomKSketch") -> "BottomKSketch":
        merged = BottomKSketch(self.sample_size)
        merged.saturated = self.saturated or other.saturated
        for h in self._members | other._members:
            merged.add_hash(h)
        return merged

    def estimate(self) -> int:
        k = len(self._heap)
        if not self.saturated:
            return k
        kth = -self._heap[0]
        return int(round((k - 1) * _HASH_SPACE / (kth + 1)))


def estimate(elements: Iterable[Any], sample_size: int, codec: Codec) -> int:
    """Estima o número de elementos distintos de `elements`."""
    sketch = BottomKSketch(sample_size)
    for element in elements:
        sketch.add_hash(_hash64(codec.encode(element)))
    return sketch.estimate()


class ApproximateUniqueCombiner:
    """Combiner para `CombineGloballyStage`; o codec é resolvido na primeira partição."""

    def __init__(self, sample_size: int, source: Any):
        if sample_size < MIN_SAMPLE_SIZE:
            raise ValueError(f"sample_size must be >= {MIN_SAMPLE_SIZE}, got {sample_size}")
        self.sample_size = sample_size
        self._source = source
        self._codec: Optional[Codec] = None

    def _encode(self, element: Any) -> bytes:
        if self._codec is None:
            self._codec = self._source.codec
        return self._codec.encode(element)

    def create_accumulator(self) -> BottomKSketch:
        return BottomKSketch(self.sample_size)

    def add_input(self, sketch: BottomKSketch, element: Any) -> BottomKSketch:
        sketch.add_hash(_hash64(self._encode(element)))
        return sketch

    def merge_accumulators(self, sketches: Iterable[BottomKSketch]) -> BottomKSketch:
        merged = BottomKSketch(self.sample_size)
        for sketch in sketches:
            merged = merged.merge(sketch)
        return merged

    def extract_output(self, sketch: BottomKSketch) -> int:
        return sketch.estimate()
