"""
Intergenic Region Synthesis

Maps one GenePair to zero or one IntergenicRegion. The function is pure: it
reads only the pair and an immutable context and returns new objects, so it
can run on any worker of a thread or process pool.

Geometry (1-based, inclusive):
------------------------------
    start = 1                         if preceding is absent
          = preceding.end + 1         otherwise
    end   = contig.length             if following is absent
          = following.start - 1       otherwise

If start >= end no region is produced: the neighbors overlap (or abut) on
this strand, or a lone neighbor touches the contig start or end.

Adjacency:
----------
Upstream/downstream follow transcription direction, which runs with the
coordinates on the forward strand and against them on the reverse strand:

    role        forward strand   reverse strand
    preceding   downstream       upstream
    following   upstream         downstream
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .models import (
    DOWNSTREAM,
    REGION_STRAND,
    UPSTREAM,
    AdjacencyUpdate,
    IntergenicRegion,
    Location,
)
from .pairs import GenePair, join_fields

logger = logging.getLogger(__name__)

PRECEDING = "preceding"
FOLLOWING = "following"


@dataclass(frozen=True)
class SynthesisContext:
    """Read-only inputs shared by every synthesis task of a run."""
    data_set_name: str


def adjacency_side(forward: bool, role: str) -> str:
    """
    Return which region reference of a gene the new region fills.

    Args:
        forward: True if the gene is on the forward strand
        role: 'preceding' or 'following' (the gene's place in the pair)

    Returns:
        'upstream' or 'downstream'

    Examples:
        >>> adjacency_side(True, "preceding")
        'downstream'
        >>> adjacency_side(False, "preceding")
        'upstream'
    """
    if role == PRECEDING:
        return DOWNSTREAM if forward else UPSTREAM
    if role == FOLLOWING:
        return UPSTREAM if forward else DOWNSTREAM
    raise ValueError(f"Unknown pair role: {role!r}")


def region_bounds(pair: GenePair) -> Tuple[int, int]:
    """Return the (start, end) the region would span, before the overlap check."""
    start = 1 if pair.preceding is None else pair.preceding.location.end + 1
    if pair.following is None:
        end = pair.anchor.contig.length
    else:
        end = pair.following.location.start - 1
    return start, end


def describe(pair: GenePair) -> str:
    if pair.preceding is None:
        return f"Intergenic region between start and {pair.following.display_name}"
    if pair.following is None:
        return f"Intergenic region between {pair.preceding.display_name} and end"
    return (
        f"Intergenic region between {pair.preceding.display_name} "
        f"and {pair.following.display_name}"
    )


def synthesize_region(pair: GenePair, context: SynthesisContext) -> Optional[IntergenicRegion]:
    """
    Build the intergenic region delimited by a gene pair.

    Args:
        pair: Adjacent same-strand genes (one may be absent)
        context: Shared run context (provenance tag)

    Returns:
        IntergenicRegion with its location and adjacency updates, or None if
        the neighbors overlap
    """
    start, end = region_bounds(pair)
    if start >= end:
        logger.debug(f"Pair {pair.key}: empty interval ({start} >= {end}), skipped")
        return None

    anchor = pair.anchor
    contig = anchor.contig
    primary_identifier = pair.key
    data_sets = frozenset({context.data_set_name})

    location = Location(
        start=start,
        end=end,
        strand=REGION_STRAND,
        located_on=contig,
        feature=primary_identifier,
        data_sets=data_sets,
    )

    adjacency = []
    adjacent_genes = set()
    for role, gene in ((PRECEDING, pair.preceding), (FOLLOWING, pair.following)):
        if gene is None:
            continue
        side = adjacency_side(gene.on_forward_strand, role)
        adjacency.append(AdjacencyUpdate(gene.primary_identifier, side, primary_identifier))
        adjacent_genes.add(gene.primary_identifier)

    return IntergenicRegion(
        primary_identifier=primary_identifier,
        secondary_identifier=join_fields(
            pair.preceding.secondary_identifier if pair.preceding else None,
            pair.following.secondary_identifier if pair.following else None,
        ),
        name=join_fields(
            pair.preceding.name if pair.preceding else None,
            pair.following.name if pair.following else None,
        ),
        description=describe(pair),
        contig=contig,
        location=location,
        adjacent_genes=frozenset(adjacent_genes),
        adjacency=tuple(adjacency),
        organism=contig.organism,
        strain=contig.strain,
        assembly_version=anchor.assembly_version,
        annotation_version=anchor.annotation_version,
        data_sets=data_sets,
    )
