"""Helpers for browser tests: capabilities, test metadata, runfiles lookup, ports and HTTP utilities."""

__version__ = "0.1.0"