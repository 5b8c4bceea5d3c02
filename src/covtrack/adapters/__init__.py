"""Adapters for coverage tool output formats."""
