"""
feedrelay - republishes new RSS items to a Mastodon-compatible API.
"""

__version__ = "0.1.0"
