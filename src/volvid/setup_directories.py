"""
Directory setup for the video pipeline.

Layout under the base directory:
- frames/  intermediate per-frame artifacts, slabs and manifests
- videos/  final encoded videos
- logs/    log file and run tracker database
"""

from pathlib import Path


def setup_output_directories(base_output_dir):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path
        Base output directory. ``~`` is expanded.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'frames', 'videos', 'logs'
    """
    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "frames": base_output_dir / "frames",
        "videos": base_output_dir / "videos",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    return directories
