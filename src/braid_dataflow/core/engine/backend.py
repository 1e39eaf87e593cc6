"""
Backend local particionado do Braid DataFlow.

Uma coleção materializada é um `PartitionedDataset`: uma tupla de
partições, cada uma uma tupla de elementos. O número e as fronteiras das
partições são decisão do backend e não alteram a semântica de saída.

O `PartitionExecutor` aplica uma tarefa a cada partição em paralelo
(ThreadPoolExecutor) com política de retry limitada por partição
(tenacity, `stop_after_attempt(max_attempts)`, sem espera entre tentativas):

    - cada tentativa recebe a partição original, intacta
    - uma tentativa que falha é descartada inteira
    - esgotadas as tentativas, a partição falha o stage (StageExecutionError)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import chain
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from braid_dataflow.core.config import EngineOptions
from braid_dataflow.core.errors import stage_execution_failed
from braid_dataflow.core.exceptions import StageExecutionError


T = TypeVar("T")

RetryHook = Callable[[int, int, BaseException], None]


@dataclass(frozen=True)
class PartitionedDataset:
    partitions: Tuple[Tuple[Any, ...], ...]

    @classmethod
    def from_values(cls, values: Sequence[Any], num_partitions: int) -> "PartitionedDataset":
        """Divide `values` em até `num_partitions` fatias contíguas de tamanho equilibrado."""
        values = list(values)
        if not values:
            return cls(partitions=((),))
        n = min(num_partitions, len(values))
        size, extra = divmod(len(values), n)
        partitions = []
        start = 0
        for index in range(n):
            end = start + size + (1 if index < extra else 0)
            partitions.append(tuple(values[start:end]))
            start = end
        return cls(partitions=tuple(partitions))

    @classmethod
    def from_partitions(cls, partitions: Iterable[Iterable[Any]]) -> "PartitionedDataset":
        return cls(partitions=tuple(tuple(p) for p in partitions))

    @classmethod
    def concat(cls, datasets: Iterable["PartitionedDataset"]) -> "PartitionedDataset":
        return cls(partitions=tuple(chain.from_iterable(d.partitions for d in datasets)))

    @property
    def num_partitions(self) -> int:
        return len(self.partitions)

    def elements(self) -> Iterator[Any]:
        return chain.from_iterable(self.partitions)

    def count(self) -> int:
        return sum(len(p) for p in self.partitions)


class PartitionExecutor:
    def __init__(self, options: EngineOptions):
        self.options = options

    def map_partitions(
        self,
        stage_id: str,
        partitions: Sequence[T],
        task: Callable[[int, T], Any],
        *,
        on_retry: Optional[RetryHook] = None,
    ) -> List[Any]:
        """
        Executa `task(index, partition)` para cada partição e devolve os
        resultados na ordem das partições.

        Raises:
            StageExecutionError: Se alguma partição esgotar as tentativas.
        """
        if not partitions:
            return []
        workers = max(1, min(self.options.parallelism, len(partitions)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="braid-partition") as pool:
            futures = [
                pool.submit(self._run_with_retries, stage_id, index, partition, task, on_retry)
                for index, partition in enumerate(partitions)
            ]
            return [future.result() for future in futures]

    def _run_with_retries(
        self,
        stage_id: str,
        index: int,
        partition: T,
        task: Callable[[int, T], Any],
        on_retry: Optional[RetryHook],
    ) -> Any:
        attempts = self.options.max_attempts

        def before_sleep(retry_state: RetryCallState) -> None:
            if on_retry is not None:
                on_retry(index, retry_state.attempt_number, retry_state.outcome.exception())

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(attempts),
                retry=retry_if_exception_type(Exception),
                before_sleep=before_sleep,
                reraise=False,
            ):
                with attempt:
                    return task(index, partition)
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            payload = stage_execution_failed(
                stage_id=stage_id,
                partition=index,
                attempts=attempts,
                cause=cause,
            )
            raise StageExecutionError(
                message=payload.message,
                details=payload.details,
                hint=payload.hint,
            ) from cause
        raise AssertionError("unreachable")  # pragma: no cover
