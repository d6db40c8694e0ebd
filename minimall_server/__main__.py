"""Allow running as `python -m minimall_server`."""

from .cli import main

main()
