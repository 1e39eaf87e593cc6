"""
Front end de transforms do Braid DataFlow.

Cada transform é aplicado a um handle (`PipelineRoot`, `Collection` ou
`CollectionList`) e registra stages no Pipeline dentro do próprio escopo.
"""

from .aggregation import ApproximateUnique, Count
from .base import PTransform
from .core import Create, Flatten, ParDo
from .views import View

__all__ = [
    "ApproximateUnique",
    "Count",
    "PTransform",
    "Create",
    "Flatten",
    "ParDo",
    "View",
]
