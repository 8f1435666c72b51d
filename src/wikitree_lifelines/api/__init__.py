"""WikiTree API access."""

from wikitree_lifelines.api.client import WikiTreeClient, WikiTreeConfig, WikiTreeError

__all__ = [
    "WikiTreeClient",
    "WikiTreeConfig",
    "WikiTreeError",
]
