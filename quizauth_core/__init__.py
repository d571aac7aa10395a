"""QuizAuth Core: authentication service for the quiz web application."""

__version__ = "0.1.0"
