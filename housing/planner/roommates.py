"""Roommate preference clustering.

Roommate requests are free text ("Mike Jones", "Mike Jones and Tom Reed").
Each request is resolved against the names of the other participants in the
same partition; every resolved request is an edge, and the connected
components of the resulting graph are the clusters the planner tries to keep
in one room. Unresolvable text is ignored: preferences are advisory.
"""

from __future__ import annotations

import logging
import re

import networkx as nx

from ..models import Individual

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[,;/&+]|\band\b", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace: "O'Brien,  Pat" -> "obrien pat"."""
    return _WHITESPACE.sub(" ", _NON_ALNUM.sub("", name.lower())).strip()


def split_preference(text: str) -> list[str]:
    """Split free text into the individual names it mentions."""
    return [normalized for part in _SEPARATORS.split(text) if (normalized := normalize_name(part))]


def build_roommate_graph(individuals: list[Individual]) -> nx.Graph:
    """Undirected graph over participant ids with an edge per resolved request."""
    graph = nx.Graph()
    by_name: dict[str, list[str]] = {}
    for individual in individuals:
        graph.add_node(individual.id)
        by_name.setdefault(normalize_name(individual.name), []).append(individual.id)

    for individual in individuals:
        if not individual.roommate_preference:
            continue
        for requested in split_preference(individual.roommate_preference):
            matches = [pid for pid in by_name.get(requested, []) if pid != individual.id]
            if len(matches) == 1:
                graph.add_edge(individual.id, matches[0])
            elif len(matches) > 1:
                logger.debug(f"Ambiguous roommate request '{requested}' from {individual.name}; ignored")

    return graph


def roommate_clusters(individuals: list[Individual]) -> list[list[Individual]]:
    """Group individuals into roommate clusters.

    Clusters are ordered by the position of their first member, and members
    keep their input order, so singletons come out exactly as given.
    """
    graph = build_roommate_graph(individuals)
    position = {individual.id: index for index, individual in enumerate(individuals)}
    by_id = {individual.id: individual for individual in individuals}

    clusters = [sorted(component, key=position.__getitem__) for component in nx.connected_components(graph)]
    clusters.sort(key=lambda members: position[members[0]])

    linked = sum(1 for members in clusters if len(members) > 1)
    if linked:
        logger.debug(f"Resolved {linked} roommate clusters among {len(individuals)} participants")
    return [[by_id[pid] for pid in members] for members in clusters]
