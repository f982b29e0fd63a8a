"""Core video pipeline execution logic.

This module contains the actual batch runner, separated from argument
parsing. Scripts are thin wrappers; this is the real implementation.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from volvid.schemas.initialization import init_runtime_config
from volvid.pipeline.driver import RunDriver

logger = logging.getLogger(__name__)


def run_video_pipeline(
    user_config_path: Optional[str],
    cli_args: Optional[Dict[str, Any]] = None,
    rerun: bool = False,
    verbose: bool = False,
) -> int:
    """Execute the volume video batch.

    1. Loads and resolves configuration (Param < User < CLI)
    2. Sets up output directories (optionally cleaning them first)
    3. Runs every query × measure pair through the orchestrator
    4. Prints the per-run summary table

    Parameters
    ----------
    user_config_path : str or None
        Python file with a CONFIG dict.
    cli_args : dict, optional
        CLI overrides: input, base_dir, queries, measures, colormap, heq,
        keep, workers, log_level.
    rerun : bool, optional
        Delete the output directory before running.
    verbose : bool, optional
        DEBUG logging and print of the resolved config.

    Returns
    -------
    int
        Process exit status: 0 if every run produced a video, 1 otherwise.

    Examples
    --------
    ::

        run_video_pipeline("config/engine.py", {"queries": "val gmag", "heq": True})
    """
    cli_args = dict(cli_args or {})
    if verbose and not cli_args.get("log_level"):
        cli_args["log_level"] = "DEBUG"

    config = init_runtime_config(user_config_path, cli_args, rerun=rerun)

    print(f"\n{'='*60}")
    print("Volume Video Pipeline")
    print('='*60)
    print(f"Config:   {user_config_path}")
    print(f"Input:    {config.input}")
    print(f"Queries:  {', '.join(config.queries)}")
    print(f"Measures: {', '.join(config.measures)}")
    print(f"Output:   {config.output_dirs['videos']}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2, default=str))
        print('='*60)

    driver = RunDriver(config, config.output_dirs)
    driver.start()

    summary = driver.summary()
    if not summary.empty:
        print(summary[["query", "measure", "status", "frames", "output"]].to_string(index=False))
    return driver.exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render query/measure videos of a volume")
    parser.add_argument("config", nargs="?", help="Path to user config file (Python, CONFIG dict)")
    parser.add_argument("-i", "--input", help="Input volume")
    parser.add_argument("-q", "--queries", help="Queries, comma or space separated")
    parser.add_argument("-m", "--measures", help="Measures, comma or space separated")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--colormap", help="Colormap file for value remapping")
    parser.add_argument("--heq", action="store_true", default=None, help="Histogram-equalize across frames")
    parser.add_argument("--keep", action="store_true", default=None, help="Keep intermediate artifacts")
    parser.add_argument("--workers", type=int, help="Parallel per-frame workers")
    parser.add_argument("--rerun", action="store_true", help="Delete output directory before running")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cli_args = {
        "input": args.input,
        "queries": args.queries,
        "measures": args.measures,
        "base_dir": args.base_dir,
        "colormap": args.colormap,
        "heq": args.heq,
        "keep": args.keep,
        "workers": args.workers,
    }
    return run_video_pipeline(args.config, cli_args, rerun=args.rerun, verbose=args.verbose)


if __name__ == "__main__":
    sys.exit(main())
