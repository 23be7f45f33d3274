"""Allow ``python -m randqa``."""

from randqa.cli.main import cli

if __name__ == "__main__":
    cli()
