"""`volvid` - volume-rendered video pipeline.

Renders a volume once per frame for every (query, measure) pair, normalizes
the frames globally, and encodes them into a video, reusing any artifact an
earlier run already produced.

Subpackages:
- frames: Frame planning, artifact keys and names
- stages: External tool invocation and caching executor
- pipeline: Orchestrator, batch driver, run tracking
- schemas: Configuration layers
"""

__version__ = "0.1.0"
