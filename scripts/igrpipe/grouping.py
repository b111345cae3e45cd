"""
Gene grouping and strand partitioning.

Genes on one contig are split by annotation version, since intergenic
regions describe gaps within a single gene model, and each group is ordered
by start coordinate (ties broken by primary identifier). Each ordered group
is then split into forward- and reverse-strand sequences; regions never span
a strand boundary.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Gene

logger = logging.getLogger(__name__)


@dataclass
class GeneGroups:
    """Position-ordered genes per annotation version, plus excluded genes."""
    groups: Dict[Optional[str], List[Gene]] = field(default_factory=dict)
    excluded: List[Gene] = field(default_factory=list)

    def ordered_versions(self) -> List[Optional[str]]:
        """Annotation versions in a stable order (unversioned first)."""
        return sorted(self.groups, key=lambda v: (v is not None, v or ""))


def has_geometry(gene: Gene) -> bool:
    """True if the gene has an interval on the contig it claims to be on."""
    loc = gene.location
    if loc is None:
        return False
    if loc.located_on is not None and loc.located_on.key != gene.contig.key:
        return False
    return True


def position_key(gene: Gene) -> Tuple[int, str]:
    return (gene.location.start, gene.primary_identifier)


def group_genes(genes: Iterable[Gene]) -> GeneGroups:
    """
    Group genes by annotation version and order each group by position.

    Genes without usable geometry are excluded and reported, not raised.

    Args:
        genes: Genes located on a single contig

    Returns:
        GeneGroups with one ordered list per annotation version
    """
    result = GeneGroups()
    for gene in genes:
        if not has_geometry(gene):
            logger.debug(f"Gene {gene.primary_identifier}: no location on {gene.contig.primary_identifier}, excluded")
            result.excluded.append(gene)
            continue
        result.groups.setdefault(gene.annotation_version, []).append(gene)

    for version_genes in result.groups.values():
        version_genes.sort(key=position_key)
    return result


def partition_by_strand(genes: Iterable[Gene]) -> Tuple[List[Gene], List[Gene]]:
    """
    Split an ordered gene sequence into (forward, reverse), keeping order.

    Unset, "+" and "1" strands are forward; anything else is reverse.
    """
    forward: List[Gene] = []
    reverse: List[Gene] = []
    for gene in genes:
        if gene.on_forward_strand:
            forward.append(gene)
        else:
            reverse.append(gene)
    return forward, reverse
