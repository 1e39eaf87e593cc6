"""
Broadcast views do Braid DataFlow.

Uma view é um snapshot somente leitura de uma coleção, materializado uma
única vez por run e publicado a todas as partições dos stages que a leem.
"""

from .manager import BroadcastViewManager

__all__ = ["BroadcastViewManager"]
