"""External stage execution.

- invocation: StageInvocation (typed command) and StageOutput
- backends: SubprocessBackend (production process runner)
- executor: StageExecutor (skip-if-exists, per-path locking, error mapping)
- tools: RenderEngine, ImageToolkit, VideoEncoder command builders
"""

from volvid.stages.invocation import StageInvocation, StageOutput
from volvid.stages.backends import Backend, SubprocessBackend
from volvid.stages.executor import StageExecutor
from volvid.stages.tools import RenderEngine, ImageToolkit, VideoEncoder, MinMaxReport

__all__ = [
    "StageInvocation",
    "StageOutput",
    "Backend",
    "SubprocessBackend",
    "StageExecutor",
    "RenderEngine",
    "ImageToolkit",
    "VideoEncoder",
    "MinMaxReport",
]
