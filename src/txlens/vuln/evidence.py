from typing import Dict, List

from txlens.core.call_tree import CallNode


def build_path_nodes(by_id: Dict[str, CallNode], leaf_id: str) -> List[CallNode]:
    """Frames from the root down to ``leaf_id``; empty when the id is unknown."""
    out = []
    cur = by_id.get(leaf_id)
    while cur is not None:
        out.append(cur)
        cur = by_id.get(cur.parent_id) if cur.parent_id else None
    out.reverse()
    return out


def build_call_path(by_id: Dict[str, CallNode], leaf_id: str) -> List[str]:
    """Call ids from the root down to ``leaf_id``."""
    return [c.id for c in build_path_nodes(by_id, leaf_id)]
