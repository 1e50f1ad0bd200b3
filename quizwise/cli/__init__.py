"""Command line interface for quizwise."""
