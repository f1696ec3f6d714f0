"""Replay sample log files into a mirrored output tree, one line per tick."""

__version__ = '0.1.0'
