"""Entry point for the nixdeck daemon when run as a module."""

from .daemon import run

if __name__ == "__main__":
    run()
