"""Submissions, grade aggregation and discussion auto-grading."""
