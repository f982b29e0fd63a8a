"""Frame planning and artifact identity.

- params: FrameParameters (one frame's render configuration)
- camera_script: JSON camera script loading
- planner: ParameterPlanner (sweep / script → ParameterSequence)
- keys: ArtifactKeyer (stable content keys)
- naming: Artifact and ArtifactNamer (cache file names)
"""

from volvid.frames.params import FrameParameters, orbit_eye
from volvid.frames.planner import ParameterPlanner, ParameterSequence
from volvid.frames.keys import ArtifactKeyer
from volvid.frames.naming import Artifact, ArtifactNamer

__all__ = [
    "FrameParameters",
    "orbit_eye",
    "ParameterPlanner",
    "ParameterSequence",
    "ArtifactKeyer",
    "Artifact",
    "ArtifactNamer",
]
