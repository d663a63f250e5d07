"""Class progression, grading and discussion service."""
