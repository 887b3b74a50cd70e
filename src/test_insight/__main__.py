"""Allow ``python -m test_insight``."""

from .cli import app

if __name__ == "__main__":
    app()
