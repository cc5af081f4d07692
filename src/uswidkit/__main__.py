"""Allow ``python -m uswidkit``."""

from uswidkit.cli.cli import app

app()
