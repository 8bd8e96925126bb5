"""Allow ``python -m rank_tidy``."""

from rank_tidy import cli

if __name__ == "__main__":
    cli.app()
