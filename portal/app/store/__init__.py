"""Access to the hosted store: REST queries plus the redis change feed."""

from .changes import channel_for, publish_change
from .client import StoreClient, Subscription, eq

__all__ = ["StoreClient", "Subscription", "eq", "channel_for", "publish_change"]
