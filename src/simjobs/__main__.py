"""Allow ``python -m simjobs``."""

from simjobs.cli.app import app

app()
