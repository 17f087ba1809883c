"""Entry point for ``python -m recollect``."""

from recollect.cli.app import app

if __name__ == "__main__":
    app()
