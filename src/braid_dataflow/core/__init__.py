"""
Core do Braid DataFlow.

Reúne o núcleo avaliador, independente de qualquer front end:

    - core.codecs        → contrato e registro de codecs
    - core.graph         → handles, stages e construção do pipeline
    - core.accumulators  → acumuladores nomeados comutativos-associativos
    - core.views         → broadcast views memoizadas
    - core.engine        → planner, backend particionado, avaliadores e Run Handle
    - core.config        → carregamento e resolução de configuração
    - core.traceability  → manifest e event log da run

Limites explícitos:
    - Não define linguagem de consulta nem otimizador
    - Não submete jobs a clusters
"""
