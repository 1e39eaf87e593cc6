# tests/conftest.py
"""
Fixtures compartilhados para testes do Braid DataFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas (YAML e dict)
- contexto de execução controlado (RunContext)
- DoFns de teste para exercitar saídas rotuladas, acumuladores e retries

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas
    - DoFns de teste são devolvidos como classes (factory), para que cada
      teste crie instâncias isoladas

Invariantes:
    - Nenhuma fixture executa pipeline
    - Nenhuma fixture realiza I/O
    - Todas as fixtures são seguras para execução em paralelo

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica condicional complexa
"""

import threading
from datetime import datetime, timezone

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def engine_defaults_yaml() -> str:
    """
    YAML de configuração padrão (defaults) semelhante ao uso real.

    Representa o conteúdo típico de um `config.defaults.yaml`, base
    canônica sobre a qual overrides locais são aplicados via deep-merge.

    Returns:
        str: Conteúdo YAML de defaults.
    """
    return """\
engine:
  num_partitions: 4
  parallelism: 2
  max_retries: 2
job:
  name: word-count
  tags:
    - nightly
"""


@pytest.fixture
def engine_local_yaml() -> str:
    """YAML de override local: altera particionamento e substitui listas."""
    return """\
engine:
  num_partitions: 8
job:
  tags:
    - adhoc
"""


@pytest.fixture
def dummy_config() -> dict:
    """
    Configuração mínima, já resolvida, para exercitar o engine.

    Invariantes:
        - Estrutura determinística e estável
        - Não depende de filesystem, env vars ou defaults externos
    """
    return {"engine": {"num_partitions": 3, "parallelism": 3, "max_retries": 2}}


@pytest.fixture
def dummy_ctx(dummy_config):
    """
    RunContext determinístico (run_id e created_at fixos).

    O import é lazy para que a ausência do core falhe com mensagem clara
    no próprio teste.
    """
    from braid_dataflow.core.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        meta={"source": "pytest"},
    )


# =====================================================
# DoFn fixtures
# =====================================================

@pytest.fixture
def SplitByCaseFn():
    """
    Fixture factory que fornece um DoFn de separação por caixa.

    A classe retornada:
    - emite na saída principal palavras iniciadas em minúscula
    - emite na tag `upper` as demais palavras não vazias
    - conta todos os tokens em `tokens` (SumIntFn)

    Returns:
        type: Classe _SplitByCaseFn(upper_tag).
    """
    from braid_dataflow.core.accumulators import SumIntFn
    from braid_dataflow.core.graph import DoFn

    class _SplitByCaseFn(DoFn):
        def __init__(self, upper_tag):
            self.upper_tag = upper_tag
            self.tokens = self.create_accumulator("tokens", SumIntFn())

        def process(self, c):
            for word in c.element.split(" "):
                self.tokens.add(1)
                if not word:
                    continue
                if word[0].islower():
                    c.output(word)
                else:
                    c.side_output(self.upper_tag, word)

    return _SplitByCaseFn


@pytest.fixture
def FlakyFn():
    """
    Fixture factory que fornece um DoFn que falha nas primeiras tentativas.

    Cada elemento listado em `poison` faz a tentativa corrente falhar
    `failures` vezes (contador global, protegido por lock). Antes de
    falhar, o DoFn já emitiu e acumulou os elementos anteriores da
    partição, o que permite verificar que tentativas descartadas não
    deixam rastros.

    Returns:
        type: Classe _FlakyFn(poison, failures).
    """
    from braid_dataflow.core.accumulators import SumIntFn
    from braid_dataflow.core.graph import DoFn

    class _FlakyFn(DoFn):
        output_type = str

        def __init__(self, poison, failures=1):
            self.poison = set(poison)
            self.remaining = {p: failures for p in self.poison}
            self.calls = 0
            self._lock = threading.Lock()
            self.seen = self.create_accumulator("seen", SumIntFn())

        def process(self, c):
            self.seen.add(1)
            c.output(c.element)
            with self._lock:
                self.calls += 1
                if self.remaining.get(c.element, 0) > 0:
                    self.remaining[c.element] -= 1
                    raise RuntimeError(f"transient failure on {c.element!r}")

    return _FlakyFn


@pytest.fixture
def StubStage():
    """
    Fixture factory com um stage mínimo e duck-typed para testes do planner.

    Expõe apenas `id`, `kind` e `depends_on`, que é tudo o que o planner lê.
    """
    from braid_dataflow.core.graph.stages import StageKind

    class _StubStage:
        def __init__(self, stage_id, depends_on=None, kind=StageKind.PAR_DO):
            self.id = stage_id
            self.kind = kind
            self.depends_on = list(depends_on or [])

        def __repr__(self):
            return f"StubStage({self.id})"

    return _StubStage
