# =============================================================================
# careerintel/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line tools for operators.  Each submodule is a self-contained
# utility that can be run via `python -m careerintel.cli.<module>`.
#
#   SCHEDULER (scheduler.py)
#      Runs one tick of a named periodic job (the same jobs the API server
#      runs on a timer), lists the configured job table, or prints the age
#      breakdown of a record collection.  Useful from cron when the server
#      runs with SCHEDULER_ENABLED=false.
#
# Architecture Notes:
#   - argparse, not Click/Typer.
#   - Heavy imports (providers, FastAPI app module) are deferred inside the
#     handlers so `--help` and `list` stay fast.
#   - The CLI reuses main.build_all() so a one-shot run is wired exactly
#     like the server.
# =============================================================================

"""CLI tools for career-intel.

- ``python -m careerintel.cli.scheduler run jobs:process-unprocessed``
- ``python -m careerintel.cli.scheduler list``
- ``python -m careerintel.cli.scheduler stats profiles``
"""
