"""quizwise: adaptive quiz practice service."""

__version__ = "0.1.0"
