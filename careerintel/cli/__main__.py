"""Allow ``python -m careerintel.cli`` execution (defaults to the scheduler CLI)."""

from careerintel.cli.scheduler import main

main()
