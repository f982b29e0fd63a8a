"""volvid User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the rendered videos. Advanced settings live in volvid/schemas/param.py and can
be overridden through the nested sections at the bottom.

Usage:
    python scripts/run_volvid.py scripts/user_config.py
    python scripts/run_volvid.py scripts/user_config.py --heq --colormap maps/bbr.txt
"""

CONFIG = {
    # ========================================================================
    # INPUT & OUTPUT
    # ========================================================================
    "INPUT": "data/engine.nrrd",   # Volume rendered by mrender
    "BASE_DIR": "volvid_output",   # frames/, videos/, logs/ go here

    # ========================================================================
    # WHAT TO RENDER (one video per query x measure)
    # ========================================================================
    "QUERIES": "val gmag",         # mrender -q
    "MEASURES": "max mean",        # mrender -m

    # ========================================================================
    # CAMERA
    # ========================================================================
    "ANGLES": (0, 359),            # Inclusive sweep, one candidate per degree
    "INTERVAL": 5,                 # Keep every 5th angle
    "CAMERA_SCRIPT": None,         # JSON list of per-frame parameter records
    "UP": (0, 0, 1),

    # ========================================================================
    # RENDERING
    # ========================================================================
    "RESOLUTION": (640, 480),
    "STEP": 0.01,
    "THREADS": 4,

    # ========================================================================
    # POST-PROCESSING
    # ========================================================================
    "HEQ": False,                  # Histogram-equalize across all frames
    "COLORMAP": None,              # unu rmap colormap file
    "KEEP_INTERMEDIATES": False,
    "KEEP_STAGES": [],             # e.g. ["render"] to keep raw renders only
    "WORKERS": 2,                  # Parallel per-frame stage invocations

    # ========================================================================
    # ADVANCED (nested sections merge into expert defaults)
    # ========================================================================
    "video": {"fps": 25, "bitrate_factor": 60},
    "equalize": {"bins": 3000},
}
