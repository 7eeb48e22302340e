"""Automated pull request checks: format, static analysis, build and test."""
