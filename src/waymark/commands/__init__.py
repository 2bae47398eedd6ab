"""
waymark.commands - CLI command implementations
"""

__all__ = [
    "chain_cmd",
    "completion",
    "config_cmd",
    "graph_cmd",
    "nav",
    "node_cmd",
]
