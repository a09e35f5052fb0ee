"""Allow ``python -m nodekeeper``."""

from nodekeeper.main import cli

cli()
