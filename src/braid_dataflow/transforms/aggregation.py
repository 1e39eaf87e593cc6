"""
Transforms de agregação.

- Count.per_element(): contagem agrupada por valor codificado do elemento;
  a saída são pares KV(elemento, contagem)
- ApproximateUnique.globally(sample_size): número estimado de elementos
  distintos da coleção inteira, como uma coleção de um único inteiro
"""

from __future__ import annotations

from typing import Any

from braid_dataflow.core.graph import Collection
from braid_dataflow.estimators import ApproximateUniqueCombiner
from braid_dataflow.estimators.approximate_unique import MIN_SAMPLE_SIZE

from .base import PTransform


def _require_collection(transform: PTransform, pvalue: Any) -> Collection:
    if not isinstance(pvalue, Collection):
        raise TypeError(f"{transform.default_label()} must be applied to a Collection")
    return pvalue


class _CountPerElement(PTransform):
    def default_label(self) -> str:
        return "Count.PerElement"

    def expand(self, pvalue: Any) -> Collection:
        source = _require_collection(self, pvalue)
        return source.pipeline.add_count(source)


class Count:
    @staticmethod
    def per_element() -> PTransform:
        return _CountPerElement()


class _ApproximateUniqueGlobally(PTransform):
    def __init__(self, sample_size: int):
        if sample_size < MIN_SAMPLE_SIZE:
            raise ValueError(f"sample_size must be >= {MIN_SAMPLE_SIZE}, got {sample_size}")
        self.sample_size = sample_size

    def default_label(self) -> str:
        return "ApproximateUnique.Globally"

    def expand(self, pvalue: Any) -> Collection:
        source = _require_collection(self, pvalue)
        combiner = ApproximateUniqueCombiner(self.sample_size, source)
        return source.pipeline.add_combine_globally(source, combiner, output_type=int)


class ApproximateUnique:
    @staticmethod
    def globally(sample_size: int) -> PTransform:
        return _ApproximateUniqueGlobally(sample_size)
