"""
Gerenciador de broadcast views de uma run.

Responsabilidades:
    - Coletar todos os elementos da coleção de origem em um valor local
    - Validar o formato pedido (singleton ou mapeamento)
    - Publicar o valor somente leitura para as partições consumidoras
    - Memoizar por (coleção de origem, formato): duas views sobre a mesma
      coleção e o mesmo formato compartilham uma única materialização

Os elementos atravessam o codec da origem (encode na coleta, decode na
publicação), como aconteceria ao cruzar a fronteira de processo.

Invariantes:
    - Uma view materializada não muda até `release()`
    - Ler uma view antes da materialização falha (ViewNotReadyError)
    - Não há re-materialização no meio da run
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from braid_dataflow.core.codecs import Codec
from braid_dataflow.core.errors import view_shape_mismatch
from braid_dataflow.core.exceptions import (
    ClosedHandleError,
    ViewNotReadyError,
    ViewShapeMismatchError,
)
from braid_dataflow.core.graph.values import View, ViewShape


class BroadcastViewManager:
    def __init__(self) -> None:
        self._values: Dict[Tuple[str, ViewShape], Any] = {}
        self._lock = threading.Lock()
        self._released = False
        self.materializations = 0

    def materialize(self, view: View, elements: Iterable[Any], codec: Codec) -> Any:
        """
        Materializa `view` a partir dos elementos já computados da origem.

        Chamadas repetidas para a mesma origem e o mesmo formato devolvem o
        valor memoizado sem reler `elements`.

        Raises:
            ViewShapeMismatchError: singleton com != 1 elemento, ou
                mapeamento com elemento que não é par / chave duplicada.
        """
        key = (view.source.id, view.shape)
        with self._lock:
            self._check_open()
            if key in self._values:
                return self._values[key]

            payload = [codec.encode(element) for element in elements]
            collected = [codec.decode(data) for data in payload]

            if view.shape is ViewShape.SINGLETON:
                value = self._as_singleton(view, collected)
            else:
                value = self._as_mapping(view, collected)

            self._values[key] = value
            self.materializations += 1
            return value

    @staticmethod
    def _as_singleton(view: View, collected: List[Any]) -> Any:
        if len(collected) != 1:
            payload = view_shape_mismatch(
                view_id=view.id,
                shape=view.shape.value,
                element_count=len(collected),
            )
            raise ViewShapeMismatchError(
                message=payload.message,
                details=payload.details,
                hint=payload.hint,
            )
        return collected[0]

    @staticmethod
    def _as_mapping(view: View, collected: List[Any]) -> Any:
        mapping: Dict[Any, Any] = {}
        for element in collected:
            if not isinstance(element, tuple) or len(element) != 2:
                raise ViewShapeMismatchError(
                    message=f"View '{view.id}' expects key/value pairs",
                    details={"view_id": view.id, "element_type": type(element).__name__},
                    hint="Produza KV(key, value) na coleção de origem",
                )
            key, value = element
            if key in mapping:
                raise ViewShapeMismatchError(
                    message=f"View '{view.id}' has duplicate key {key!r}",
                    details={"view_id": view.id, "key": repr(key)},
                )
            mapping[key] = value
        return MappingProxyType(mapping)

    def is_materialized(self, view: View) -> bool:
        return (view.source.id, view.shape) in self._values

    def get(self, view: View) -> Any:
        with self._lock:
            self._check_open()
            key = (view.source.id, view.shape)
            if key not in self._values:
                raise ViewNotReadyError(
                    message=f"{view!r} was read before being materialized",
                    details={"view_id": view.id},
                )
            return self._values[key]

    def snapshot(self, views: Sequence[View]) -> Dict[str, Any]:
        """Valores de `views` indexados por `view.id`, prontos para as partições."""
        return {view.id: self.get(view) for view in views}

    def release(self) -> None:
        with self._lock:
            self._values.clear()
            self._released = True

    def _check_open(self) -> None:
        if self._released:
            raise ClosedHandleError(message="Broadcast views were released", details={})
