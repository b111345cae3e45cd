"""
Contig selection.

A contig that already holds at least one intergenic region is considered
done and skipped, which makes the job safe to re-run. A contig interrupted
mid-run has no regions (the write is all-or-nothing) and is redone in full.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from .models import CHROMOSOME, CONTIG_KINDS, Contig
from .store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class ContigSelection:
    """Contigs to process and those skipped, both ordered by kind then identifier."""
    to_process: List[Contig] = field(default_factory=list)
    skipped: List[Contig] = field(default_factory=list)


def select_contigs(store: EntityStore, kinds: Sequence[str] = CONTIG_KINDS) -> ContigSelection:
    """
    Return the contigs that do not yet contain any intergenic region.

    Chromosomes come first, then supercontigs; within a kind the order is
    ascending by primary identifier.
    """
    selection = ContigSelection()
    for kind in kinds:
        contigs = sorted(store.list_contigs(kind), key=lambda c: c.primary_identifier)
        pending = []
        for contig in contigs:
            if store.contains_any_region(contig):
                selection.skipped.append(contig)
            else:
                pending.append(contig)
        label = "chromosomes" if kind == CHROMOSOME else "supercontigs"
        logger.info(f"Will process intergenic regions for {len(pending)} {label}.")
        selection.to_process.extend(pending)
    return selection
