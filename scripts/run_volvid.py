#!/usr/bin/env python3
"""``volvid`` Volume Video Pipeline Runner.

Usage:
    python scripts/run_volvid.py scripts/user_config.py
    python scripts/run_volvid.py scripts/user_config.py --queries "val gmag" --heq
    python scripts/run_volvid.py scripts/user_config.py --rerun -v

Note: User config in scripts/user_config.py, expert config in volvid.schemas.param
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from volvid.cli.run_video import main


if __name__ == "__main__":
    sys.exit(main())
