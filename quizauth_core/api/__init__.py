"""HTTP helpers shared by QuizAuth Core blueprints."""
