"""
Zoom web client auto-join engine and its Playwright host.
"""

__version__ = "1.0.0"
