"""HTTP API for quizwise."""
