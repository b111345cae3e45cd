"""
Commit Coordination

Turns the sink contents into one WriteBatch and hands it to the store:

1. Provenance: the DataSource is looked up by name and created only when
   absent; a fresh DataSet (versioned by run timestamp) tags this run.
2. Regions and their locations, ordered by identifier.
3. Every gene touched by an adjacency update, once, with its upstream and
   downstream region references set.

The store applies the batch all-or-nothing.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from .models import (
    UPSTREAM,
    DataSet,
    DataSource,
    Gene,
    IntergenicRegion,
    WriteBatch,
)
from .store import EntityStore, WriteResult

logger = logging.getLogger(__name__)

DEFAULT_DATA_SOURCE = "InterMine post-processor"
DEFAULT_DATA_SET = "InterMine intergenic regions"
DEFAULT_DATA_SET_DESCRIPTION = "Intergenic regions created by the InterMine core post-processor"
DEFAULT_DATA_SET_URL = "http://www.intermine.org"


@dataclass(frozen=True)
class Provenance:
    data_source: DataSource
    data_set: DataSet
    create_data_source: bool


def resolve_provenance(
    store: EntityStore,
    data_source_name: str = DEFAULT_DATA_SOURCE,
    data_set_name: str = DEFAULT_DATA_SET,
    description: Optional[str] = DEFAULT_DATA_SET_DESCRIPTION,
    url: Optional[str] = DEFAULT_DATA_SET_URL,
    version: Optional[str] = None,
) -> Provenance:
    """Reuse the named DataSource if the store has it; always make a new DataSet."""
    existing = store.find_data_source(data_source_name)
    data_source = existing if existing is not None else DataSource(name=data_source_name)
    data_set = DataSet(
        name=data_set_name,
        data_source=data_source,
        description=description,
        version=version if version is not None else datetime.now().isoformat(timespec="seconds"),
        url=url,
    )
    return Provenance(data_source, data_set, create_data_source=existing is None)


def apply_adjacency(
    regions: Iterable[IntergenicRegion],
    genes_by_id: Mapping[str, Gene],
) -> List[Gene]:
    """
    Return updated copies of every gene adjacent to any region.

    Each gene appears once even if two regions touch it. The input genes are
    left unchanged.
    """
    updated: Dict[str, Gene] = {}
    for region in regions:
        for update in region.adjacency:
            gene = updated.get(update.gene_id)
            if gene is None:
                source = genes_by_id.get(update.gene_id)
                if source is None:
                    raise KeyError(f"Region {region.primary_identifier} references unloaded gene {update.gene_id}")
                gene = replace(source)
                updated[update.gene_id] = gene
            if update.side == UPSTREAM:
                gene.upstream_intergenic_region = update.region_id
            else:
                gene.downstream_intergenic_region = update.region_id
    return [updated[k] for k in sorted(updated)]


def build_batch(
    regions: List[IntergenicRegion],
    genes_by_id: Mapping[str, Gene],
    provenance: Provenance,
) -> WriteBatch:
    genes = apply_adjacency(regions, genes_by_id)
    return WriteBatch(
        data_set=provenance.data_set,
        data_source=provenance.data_source if provenance.create_data_source else None,
        regions=tuple(regions),
        locations=tuple(r.location for r in regions),
        genes=tuple(genes),
    )


def commit(store: EntityStore, batch: WriteBatch) -> Optional[WriteResult]:
    """
    Store the batch in one transaction. An empty batch writes nothing.

    Raises:
        StoreWriteError: propagated from the store; nothing is applied
    """
    if not batch.regions:
        logger.info("No intergenic regions to store.")
        return None

    logger.info(
        f"Batch: {len(batch.regions)} IntergenicRegion and Location objects, "
        f"{len(batch.genes)} adjacent genes"
    )
    logger.info("Committing transaction...")
    result = store.write_batch(batch)
    logger.info(f"...done. Stored {result.regions} regions and updated {result.genes} genes.")
    return result

