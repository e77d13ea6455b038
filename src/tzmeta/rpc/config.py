import os

from tzmeta.rpc.http import HttpNodeRpc

DEFAULT_NODE_URL = "http://localhost:8732"


def get_node_url() -> str:
    return os.getenv("TZMETA_NODE_URL", DEFAULT_NODE_URL)


def get_node_rpc(node_url: str | None = None) -> HttpNodeRpc:
    timeout = float(os.getenv("TZMETA_RPC_TIMEOUT", "30"))
    return HttpNodeRpc(node_url or get_node_url(), timeout=timeout)
