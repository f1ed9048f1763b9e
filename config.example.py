# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use .env (local, gitignored) for overrides.

This file exists to make the repo self-documenting.
"""

ENV_VARS = {
    # App / logging
    "MOROUTINES_APP_NAME": "App display name (default: moroutines).",
    "MOROUTINES_LOG_LEVEL": "Console logging level (default: INFO).",
    "MOROUTINES_LOG_TO_FILE": "Also write full DEBUG logs to <log_dir>/moroutines.log (true/false).",
    "MOROUTINES_LOG_DIR": "Log directory (default: .local/moroutines).",
    # Driver
    "MOROUTINES_TICK_INTERVAL_SECONDS": "Seconds between driver ticks in run_driver (default: 1/60).",
    "MOROUTINES_MAX_TICKS": "Tick cap for demo runs; 0 disables the cap (default: 10000).",
    # Tasks
    "MOROUTINES_DEFAULT_AUTO_DESTROY": (
        "Auto-destroy rerunnable tasks on completion (true/false, default: false). "
        "Tasks built from a single-use generator always default to true."
    ),
}
