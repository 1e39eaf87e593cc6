"""
Funções de merge comutativas e associativas para acumuladores.

Cada CombineFn declara:
    - value_type: tipo do valor final (verificado em `get_accumulator`)
    - neutral(): elemento neutro do merge
    - merge(a, b): combinação comutativa e associativa

Duas CombineFn são equivalentes quando têm a mesma classe e os mesmos
parâmetros; é essa equivalência que decide se um segundo registro do
mesmo nome é aceito.
"""

from __future__ import annotations

from typing import Any, Tuple


class CombineFn:
    value_type: type = object

    def neutral(self) -> Any:
        raise NotImplementedError

    def merge(self, a: Any, b: Any) -> Any:
        raise NotImplementedError

    def _params(self) -> Tuple[Any, ...]:
        return ()

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self._params() == other._params()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._params()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self._params() or '()'}"


class SumIntFn(CombineFn):
    value_type = int

    def neutral(self) -> int:
        return 0

    def merge(self, a: int, b: int) -> int:
        return a + b


class SumFloatFn(CombineFn):
    value_type = float

    def neutral(self) -> float:
        return 0.0

    def merge(self, a: float, b: float) -> float:
        return a + b


# Sem valores adicionados, Max/Min finalizam no próprio neutro.
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


class MaxIntFn(CombineFn):
    value_type = int

    def __init__(self, floor: int = _INT64_MIN):
        self.floor = floor

    def _params(self) -> Tuple[Any, ...]:
        return (self.floor,)

    def neutral(self) -> int:
        return self.floor

    def merge(self, a: int, b: int) -> int:
        return a if a >= b else b


class MinIntFn(CombineFn):
    value_type = int

    def __init__(self, ceiling: int = _INT64_MAX):
        self.ceiling = ceiling

    def _params(self) -> Tuple[Any, ...]:
        return (self.ceiling,)

    def neutral(self) -> int:
        return self.ceiling

    def merge(self, a: int, b: int) -> int:
        return a if a <= b else b
