"""Command-line interface for uswidkit."""
