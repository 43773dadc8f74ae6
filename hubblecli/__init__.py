"""Formatting of network flows, events and server status, with a small command-line tool."""

__version__ = "0.10.0"