"""Command-line entry points for the compliance engine."""
