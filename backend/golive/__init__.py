"""
golive.

Live-reload loop for Go programs: watch, debounce, rebuild, relaunch.
Requires Python 3.11+.
"""

__version__ = "1.0.1"
