from tzmeta.rpc.config import DEFAULT_NODE_URL, get_node_rpc, get_node_url
from tzmeta.rpc.http import HttpNodeRpc, view_wrapper_script
from tzmeta.rpc.memory import InMemoryNodeRpc, InMemoryViewCall

__all__ = [
    "DEFAULT_NODE_URL",
    "HttpNodeRpc",
    "InMemoryNodeRpc",
    "InMemoryViewCall",
    "get_node_rpc",
    "get_node_url",
    "view_wrapper_script",
]
