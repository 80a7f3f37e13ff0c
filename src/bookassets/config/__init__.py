"""Configuration utilities for Bookassets."""

from .loader import BookSettings, Config, FetchSettings, OutputSettings, load_config

__all__ = ["BookSettings", "Config", "FetchSettings", "OutputSettings", "load_config"]
