"""
Registro de acumuladores e estado local de partição.

Decisões:
    - Durante o processamento, cada tentativa de partição acumula em um
      PartitionAccumulators próprio, ligado à thread do worker via
      ContextVar. O caminho por elemento não toma locks.
    - Apenas tentativas bem-sucedidas são entregues a `commit`; tentativas
      que falham são descartadas inteiras, o que torna o resultado final
      estável sob re-execução.
    - `finalize` combina os parciais com a função de merge, em qualquer
      ordem, exatamente uma vez.
"""

from __future__ import annotations

import threading
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterable, List, Optional, Tuple

from braid_dataflow.core.exceptions import (
    AccumulatorConflictError,
    AccumulatorNotReadyError,
    AccumulatorUsageError,
    ClosedHandleError,
    UnknownAccumulatorError,
)

from .combine import CombineFn


class PartitionAccumulators:
    """Valores parciais de uma única tentativa de partição."""

    def __init__(self, fns: Dict[str, CombineFn]):
        self._fns = fns
        self.values: Dict[str, Any] = {}

    def add(self, name: str, delta: Any) -> None:
        fn = self._fns.get(name)
        if fn is None:
            raise UnknownAccumulatorError(
                message=f"Accumulator '{name}' is not registered",
                details={"name": name, "registered": sorted(self._fns)},
            )
        current = self.values[name] if name in self.values else fn.neutral()
        self.values[name] = fn.merge(current, delta)


_ACTIVE_PARTITION: ContextVar[Optional[PartitionAccumulators]] = ContextVar(
    "braid_active_partition", default=None
)


class active_partition:
    """
    Liga `state` ao contexto atual enquanto a partição é processada.

    Implementado como classe: exceções do domínio são dataclasses congeladas
    e precisam atravessar o bloco sem reatribuição de `__traceback__`.
    """

    def __init__(self, state: PartitionAccumulators):
        self.state = state
        self._token: Optional[Token] = None

    def __enter__(self) -> PartitionAccumulators:
        self._token = _ACTIVE_PARTITION.set(self.state)
        return self.state

    def __exit__(self, exc_type, exc, tb) -> bool:
        _ACTIVE_PARTITION.reset(self._token)
        self._token = None
        return False


def current_partition() -> PartitionAccumulators:
    state = _ACTIVE_PARTITION.get()
    if state is None:
        raise AccumulatorUsageError(
            message="Accumulators can only be updated while a partition is being processed",
            details={},
            hint="Chame Accumulator.add apenas dentro de DoFn.process",
        )
    return state


class AccumulatorRegistry:
    """
    Registro de acumuladores nomeados de um pipeline (ou de uma run).

    O registro de construção vive no Pipeline; cada run trabalha sobre um
    `fork()` com as mesmas declarações e nenhum valor.
    """

    def __init__(self) -> None:
        self._fns: Dict[str, CombineFn] = {}
        self._partials: List[Dict[str, Any]] = []
        self._final: Optional[Dict[str, Any]] = None
        self._released = False
        self._lock = threading.Lock()

    # -----------------------------
    # Construção
    # -----------------------------
    def register(self, name: str, combine_fn: CombineFn) -> None:
        self._check_compatible(name, combine_fn)
        self._fns[name] = combine_fn

    def register_all(self, declarations: Iterable[Tuple[str, CombineFn]]) -> None:
        """Registra um lote de declarações, tudo ou nada."""
        pending: Dict[str, CombineFn] = {}
        for name, combine_fn in declarations:
            self._check_compatible(name, combine_fn)
            previous = pending.get(name)
            if previous is not None and previous != combine_fn:
                raise AccumulatorConflictError(
                    message=f"Accumulator '{name}' declared twice with different merge functions",
                    details={"name": name, "existing": repr(previous), "requested": repr(combine_fn)},
                )
            pending[name] = combine_fn
        self._fns.update(pending)

    def _check_compatible(self, name: str, combine_fn: CombineFn) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("accumulator name must be a non-empty string")
        existing = self._fns.get(name)
        if existing is not None and existing != combine_fn:
            raise AccumulatorConflictError(
                message=f"Accumulator '{name}' already registered with {existing!r}",
                details={"name": name, "existing": repr(existing), "requested": repr(combine_fn)},
                hint="Use outro nome ou a mesma função de merge",
            )

    def names(self) -> List[str]:
        return sorted(self._fns)

    def combine_fn(self, name: str) -> CombineFn:
        fn = self._fns.get(name)
        if fn is None:
            raise UnknownAccumulatorError(
                message=f"Accumulator '{name}' is not registered",
                details={"name": name, "registered": self.names()},
            )
        return fn

    def value_type(self, name: str) -> type:
        return self.combine_fn(name).value_type

    def fork(self) -> "AccumulatorRegistry":
        forked = AccumulatorRegistry()
        forked._fns = dict(self._fns)
        return forked

    # -----------------------------
    # Execução
    # -----------------------------
    def new_partition(self) -> PartitionAccumulators:
        self._check_open()
        return PartitionAccumulators(self._fns)

    def commit(self, state: PartitionAccumulators) -> None:
        self._check_open()
        with self._lock:
            if self._final is not None:
                raise AccumulatorUsageError(
                    message="Accumulators already finalized",
                    details={"partial": sorted(state.values)},
                )
            if state.values:
                self._partials.append(dict(state.values))

    def finalize(self) -> Dict[str, Any]:
        self._check_open()
        with self._lock:
            if self._final is not None:
                raise AccumulatorUsageError(
                    message="Accumulators can only be finalized once",
                    details={},
                )
            final: Dict[str, Any] = {}
            for name, fn in self._fns.items():
                value = fn.neutral()
                for partial in self._partials:
                    if name in partial:
                        value = fn.merge(value, partial[name])
                final[name] = value
            self._final = final
            self._partials = []
            return dict(final)

    @property
    def is_finalized(self) -> bool:
        return self._final is not None

    def read(self, name: str) -> Any:
        self._check_open()
        self.combine_fn(name)
        if self._final is None:
            raise AccumulatorNotReadyError(
                message=f"Accumulator '{name}' is not finalized yet",
                details={"name": name},
                hint="Leia acumuladores apenas após o término da run",
            )
        return self._final[name]

    def release(self) -> None:
        with self._lock:
            self._partials = []
            self._final = None
            self._released = True

    def _check_open(self) -> None:
        if self._released:
            raise ClosedHandleError(
                message="Accumulator state was released",
                details={},
            )
