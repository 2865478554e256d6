"""Allow ``python -m shipmatrix``."""

from shipmatrix.cli import app

app()
