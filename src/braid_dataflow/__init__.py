"""
Braid DataFlow: núcleo avaliador de pipelines de dados particionados.

Uso típico:

    pipeline = Pipeline()
    words = pipeline.apply(Create.of("a", "b", "a"))
    counts = words.apply(Count.per_element())
    with PipelineRunner.create().run(pipeline) as result:
        result.get(counts)
"""

from braid_dataflow._version import __version__
from braid_dataflow.core.accumulators import MaxIntFn, MinIntFn, SumFloatFn, SumIntFn
from braid_dataflow.core.codecs import (
    KV,
    BytesCodec,
    Codec,
    CodecRegistry,
    DoubleCodec,
    KvCodec,
    Utf8Codec,
    VarIntCodec,
)
from braid_dataflow.core.graph import (
    CollectionList,
    DoFn,
    OutputTag,
    Pipeline,
)
from braid_dataflow.core.engine import EvaluationResult, PipelineRunner
from braid_dataflow.transforms import (
    ApproximateUnique,
    Count,
    Create,
    Flatten,
    ParDo,
    PTransform,
    View,
)

__all__ = [
    "__version__",
    "MaxIntFn",
    "MinIntFn",
    "SumFloatFn",
    "SumIntFn",
    "KV",
    "BytesCodec",
    "Codec",
    "CodecRegistry",
    "DoubleCodec",
    "KvCodec",
    "Utf8Codec",
    "VarIntCodec",
    "CollectionList",
    "DoFn",
    "OutputTag",
    "Pipeline",
    "EvaluationResult",
    "PipelineRunner",
    "ApproximateUnique",
    "Count",
    "Create",
    "Flatten",
    "ParDo",
    "PTransform",
    "View",
]
