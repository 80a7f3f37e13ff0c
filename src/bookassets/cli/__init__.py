"""Command line interface for Bookassets."""
