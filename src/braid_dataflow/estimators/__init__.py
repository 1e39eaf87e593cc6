"""Estimadores aproximados usados pelos transforms de combinação global."""

from .approximate_unique import ApproximateUniqueCombiner, BottomKSketch, estimate

__all__ = ["ApproximateUniqueCombiner", "BottomKSketch", "estimate"]
