"""
Workflows module - Sync orchestration for feed republishing.
"""
from feedrelay.workflows.feed_sync import FeedSyncPipeline, select_new_items
from feedrelay.workflows.runner import run_sync

__all__ = [
    "FeedSyncPipeline",
    "select_new_items",
    "run_sync",
]
