"""
Intergenic Region Pipeline - Core Library

Derives intergenic region features for a genomic data warehouse:
- Contig selection (skip contigs that already have regions)
- Gene grouping by annotation version and strand
- Adjacent gene pairing and region synthesis on a worker pool
- Deduplicated, all-or-nothing commit of regions and gene back-references
"""

from .models import (
    CHROMOSOME,
    SUPERCONTIG,
    Contig,
    Gene,
    IntergenicRegion,
    Location,
    is_forward_strand,
)

from .store import (
    EntityStore,
    InMemoryStore,
    TsvStore,
    StoreError,
    StoreReadError,
    StoreWriteError,
)

from .pairs import GenePair, make_pairs

from .synthesis import adjacency_side, synthesize_region

from .engine import (
    IntergenicRegionEngine,
    RunSummary,
    create_intergenic_regions,
)

__version__ = "1.0.0"

__all__ = [
    # Models
    "CHROMOSOME",
    "SUPERCONTIG",
    "Contig",
    "Gene",
    "IntergenicRegion",
    "Location",
    "is_forward_strand",
    # Store
    "EntityStore",
    "InMemoryStore",
    "TsvStore",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    # Pairing and synthesis
    "GenePair",
    "make_pairs",
    "adjacency_side",
    "synthesize_region",
    # Engine
    "IntergenicRegionEngine",
    "RunSummary",
    "create_intergenic_regions",
]
