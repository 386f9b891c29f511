"""Allow ``python -m qpick``."""

from qpick.cli import app

if __name__ == "__main__":
    app()
