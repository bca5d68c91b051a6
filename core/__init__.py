"""Topic tree core: topic helpers, view engine, payload rendering, errors."""

from core.exceptions import BrokerConnectionError, ConfigurationError, ExplorerError, InvalidTopic
from core.topic_view import build_nodes, shown_topics, visible

__all__ = [
    "BrokerConnectionError",
    "ConfigurationError",
    "ExplorerError",
    "InvalidTopic",
    "build_nodes",
    "shown_topics",
    "visible",
]
