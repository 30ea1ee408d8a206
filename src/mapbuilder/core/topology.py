"""Topology analysis for map layouts.

Builds a connectivity graph of rooms linked by connectors, which is used
to report rooms that cannot be reached from the rest of the map.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

import networkx as nx

from .model import Connector, Room


def build_room_graph(
    rooms: Iterable[Room],
    connectors: Iterable[Connector],
    floor: Optional[int] = None,
) -> nx.Graph:
    """Build a graph representing room connectivity.

    Creates a NetworkX graph where nodes are rooms and edges are connectors
    whose two endpoints are both present in the graph.

    Args:
        rooms: Rooms to add as nodes.
        connectors: Connectors to add as edges.
        floor: If given, only rooms on this floor are included.

    Returns:
        NetworkX Graph with room connectivity.
    """
    G = nx.Graph()

    for room in rooms:
        if floor is not None and room.floor != floor:
            continue
        G.add_node(room.id, name=room.name, floor=room.floor)

    for connector in connectors:
        if connector.from_room in G and connector.to_room in G:
            G.add_edge(
                connector.from_room,
                connector.to_room,
                connector_id=connector.id,
                state=connector.state.value,
            )

    return G


def isolated_rooms(graph: nx.Graph) -> List[str]:
    """Return the IDs of rooms without any connector, sorted."""
    return sorted(node for node in graph.nodes if graph.degree(node) == 0)


def connected_groups(graph: nx.Graph) -> List[Set[str]]:
    """Return groups of mutually reachable rooms, largest first."""
    return sorted(nx.connected_components(graph), key=len, reverse=True)


def room_neighbors(graph: nx.Graph) -> Dict[str, List[str]]:
    """Map each room ID to the sorted IDs of rooms it has a connector to."""
    return {node: sorted(graph.neighbors(node)) for node in graph.nodes}
