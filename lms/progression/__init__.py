"""Module progression and completion tracking."""
