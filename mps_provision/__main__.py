"""Allow ``python -m mps_provision``."""

from mps_provision.main import cli

cli()
