"""Gender salary gap at Canadian universities from FT-UCASS tables."""

from ucass_paygap.metrics import PipelineResult, run_pipeline
from ucass_paygap.preparation import ConsistencyError, DataShapeError, PipelineError

__all__ = [
    "ConsistencyError",
    "DataShapeError",
    "PipelineError",
    "PipelineResult",
    "run_pipeline",
]
__version__ = "0.1.0"
