"""Allow `python -m krabvault`."""

from krabvault.cli import main

main()
