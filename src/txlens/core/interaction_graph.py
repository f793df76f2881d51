"""Address interaction graph derived from a call tree."""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from txlens.core.call_tree import CallNode, iter_preorder

NODE_EOA = "EOA"
NODE_CONTRACT = "CONTRACT"


@dataclass
class GraphNode:
    id: str
    label: str
    kind: str
    address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"id": self.id, "label": self.label, "kind": self.kind}
        if self.address is not None:
            result["address"] = self.address
        return result


@dataclass
class GraphEdge:
    id: str
    from_id: str
    to_id: str
    weight: int
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"id": self.id, "from": self.from_id, "to": self.to_id, "weight": self.weight}
        if self.label is not None:
            result["label"] = self.label
        return result


@dataclass
class InteractionGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


def build_interaction_graph(
    root: CallNode,
    label_of: Optional[Callable[[CallNode], Optional[str]]] = None,
) -> InteractionGraph:
    """
    Build a weighted who-called-whom graph.

    Callers are recorded as EOA and callees as CONTRACT; an address keeps
    the kind it was first seen with, so a contract that first appears as a
    caller is shown as an EOA. Parallel calls with the same label collapse
    into one edge whose weight is the call count.

    Args:
        root: Root of the call tree
        label_of: Optional edge label per frame (e.g. the function signature)

    Returns:
        InteractionGraph with nodes and edges in first-seen order
    """
    nodes: Dict[str, GraphNode] = {}
    edges: Dict[str, GraphEdge] = {}

    def ensure_node(addr: str, kind: str) -> str:
        node_id = addr.lower()
        if node_id not in nodes:
            nodes[node_id] = GraphNode(id=node_id, label=addr, kind=kind, address=addr)
        return node_id

    for call in iter_preorder(root):
        from_id = ensure_node(call.from_addr, NODE_EOA)
        if not call.to:
            continue
        to_id = ensure_node(call.to, NODE_CONTRACT)
        label = label_of(call) if label_of else None
        key = f"{from_id}->{to_id}:{label or ''}"
        edge = edges.get(key)
        if edge is None:
            edges[key] = GraphEdge(id=key, from_id=from_id, to_id=to_id, weight=1, label=label)
        else:
            edge.weight += 1

    return InteractionGraph(nodes=list(nodes.values()), edges=list(edges.values()))


def circle_layout(graph: InteractionGraph) -> List[Dict[str, Any]]:
    """Place nodes evenly on a circle whose radius grows with node count."""
    n = len(graph.nodes)
    r = max(150, n * 20)
    positions = []
    for i, node in enumerate(graph.nodes):
        theta = 2 * math.pi * i / max(1, n)
        positions.append({"id": node.id, "x": math.cos(theta) * r, "y": math.sin(theta) * r})
    return positions
