"""Command-line client driving recordings and searches."""
