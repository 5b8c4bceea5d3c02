"""covtrack: coverage delta reports for pull request comments."""

__version__ = "0.1.0"
