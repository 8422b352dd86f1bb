"""Allow ``python -m brewcoffee``."""

from brewcoffee.cli.main import cli

if __name__ == "__main__":
    cli()
