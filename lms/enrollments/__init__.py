"""Class enrollment registry."""
