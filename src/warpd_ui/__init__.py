"""
warpd UI - control client for the warpd daemon.

This package talks to the daemon over its Unix domain socket, exposes the
daemon's status, element and config methods, and keeps the headless view
state the UI renders.
"""

__version__ = "0.1.0"
