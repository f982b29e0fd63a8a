"""Command-line interface modules for volvid pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from volvid.cli.run_video import run_video_pipeline, main

__all__ = ['run_video_pipeline', 'main']
