"""Transforms que publicam broadcast views a partir de uma coleção."""

from __future__ import annotations

from typing import Any

from braid_dataflow.core.graph import Collection, ViewShape
from braid_dataflow.core.graph import View as ViewHandle

from .base import PTransform


class _AsView(PTransform):
    def __init__(self, shape: ViewShape, label: str):
        self.shape = shape
        self._label = label

    def default_label(self) -> str:
        return self._label

    def expand(self, pvalue: Any) -> ViewHandle:
        if not isinstance(pvalue, Collection):
            raise TypeError(f"{self._label} must be applied to a Collection")
        return pvalue.pipeline.add_view(pvalue, self.shape)


class View:
    @staticmethod
    def as_singleton() -> PTransform:
        return _AsView(ViewShape.SINGLETON, "View.AsSingleton")

    @staticmethod
    def as_map() -> PTransform:
        return _AsView(ViewShape.MAPPING, "View.AsMap")
