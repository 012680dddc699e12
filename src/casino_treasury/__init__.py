"""casino_treasury - treasury-sponsored Flow transactions and commit/reveal randomness."""

__version__ = "0.1.0"
