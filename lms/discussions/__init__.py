"""Discussion boards attached to DISCUSSION assessments."""
