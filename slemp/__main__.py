"""Allow ``python -m slemp``."""

from slemp.main import cli

if __name__ == "__main__":
    cli()
