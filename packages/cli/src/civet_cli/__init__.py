"""Command line interface for civet."""
