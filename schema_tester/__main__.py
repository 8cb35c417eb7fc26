"""Entry point for ``python -m schema_tester``."""

from .cli import main

main()
