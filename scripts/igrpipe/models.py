"""
Entity Model for Intergenic Region Derivation

Plain dataclasses mirroring the warehouse entities this job reads and writes:

- Contig: a chromosome or supercontig (immutable input)
- Location: a 1-based, inclusive interval on a contig
- Gene: an annotated gene located on exactly one contig
- IntergenicRegion: the derived feature between two genes on one strand
- DataSource / DataSet: provenance records attached to every derived feature

Strand Convention:
------------------
A location strand of None, "", "+" or "1" is the forward strand. Anything
else ("-", "-1", "0", ...) is treated as reverse.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

CHROMOSOME = "chromosome"
SUPERCONTIG = "supercontig"
CONTIG_KINDS = (CHROMOSOME, SUPERCONTIG)

FORWARD_STRANDS = frozenset({None, "", "+", "1"})

# Strand recorded on every derived region location
REGION_STRAND = "1"

UPSTREAM = "upstream"
DOWNSTREAM = "downstream"


def is_forward_strand(strand: Optional[str]) -> bool:
    """
    Return True if a strand value denotes the forward strand.

    Examples:
        >>> is_forward_strand("+"), is_forward_strand(None), is_forward_strand("-1")
        (True, True, False)
    """
    if strand is not None:
        strand = str(strand).strip()
    return strand in FORWARD_STRANDS


@dataclass(frozen=True)
class Contig:
    """A chromosome or supercontig genes are located on."""
    primary_identifier: str
    kind: str  # 'chromosome' or 'supercontig'
    length: int
    organism: Optional[str] = None
    strain: Optional[str] = None

    def __post_init__(self):
        if self.kind not in CONTIG_KINDS:
            raise ValueError(f"Unknown contig kind: {self.kind!r}")
        if self.length < 0:
            raise ValueError(f"Contig {self.primary_identifier} has negative length {self.length}")

    @property
    def key(self) -> Tuple[str, str]:
        """Store-wide key; chromosome and supercontig identifiers never collide."""
        return (self.kind, self.primary_identifier)


@dataclass(frozen=True)
class Location:
    """Interval on a contig (1-based, inclusive)."""
    start: int
    end: int
    strand: Optional[str] = None
    located_on: Optional[Contig] = None
    feature: Optional[str] = None  # primary identifier of the owning feature
    data_sets: FrozenSet[str] = frozenset()

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Location start {self.start} > end {self.end}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass
class Gene:
    """
    Gene read from the entity store.

    Only ``upstream_intergenic_region`` and ``downstream_intergenic_region``
    are ever written back; they hold region primary identifiers.
    """
    primary_identifier: str
    contig: Contig
    location: Optional[Location] = None
    secondary_identifier: Optional[str] = None
    name: Optional[str] = None
    organism: Optional[str] = None
    strain: Optional[str] = None
    assembly_version: Optional[str] = None
    annotation_version: Optional[str] = None
    upstream_intergenic_region: Optional[str] = None
    downstream_intergenic_region: Optional[str] = None

    @property
    def chromosome(self) -> Optional[Contig]:
        return self.contig if self.contig.kind == CHROMOSOME else None

    @property
    def supercontig(self) -> Optional[Contig]:
        return self.contig if self.contig.kind == SUPERCONTIG else None

    @property
    def strand(self) -> Optional[str]:
        return self.location.strand if self.location is not None else None

    @property
    def on_forward_strand(self) -> bool:
        return is_forward_strand(self.strand)

    @property
    def display_name(self) -> str:
        """Name used in region descriptions, falling back to the identifier."""
        return self.name or self.primary_identifier


@dataclass(frozen=True)
class AdjacencyUpdate:
    """A region reference to set on one neighboring gene."""
    gene_id: str
    side: str  # 'upstream' or 'downstream'
    region_id: str


@dataclass(frozen=True)
class IntergenicRegion:
    """Derived feature spanning the gap between two same-strand genes."""
    primary_identifier: str
    secondary_identifier: str
    name: str
    description: str
    contig: Contig
    location: Location
    adjacent_genes: FrozenSet[str]
    adjacency: Tuple[AdjacencyUpdate, ...] = ()
    organism: Optional[str] = None
    strain: Optional[str] = None
    assembly_version: Optional[str] = None
    annotation_version: Optional[str] = None
    data_sets: FrozenSet[str] = frozenset()

    @property
    def length(self) -> int:
        return self.location.length

    @property
    def chromosome(self) -> Optional[Contig]:
        return self.contig if self.contig.kind == CHROMOSOME else None

    @property
    def supercontig(self) -> Optional[Contig]:
        return self.contig if self.contig.kind == SUPERCONTIG else None


@dataclass(frozen=True)
class DataSource:
    """Provenance: the producer of a data set."""
    name: str


@dataclass(frozen=True)
class DataSet:
    """Provenance: one run of this job."""
    name: str
    data_source: DataSource
    description: Optional[str] = None
    version: Optional[str] = None
    url: Optional[str] = None


@dataclass
class WriteBatch:
    """Everything the terminal write stores in one transaction."""
    data_set: Optional[DataSet] = None
    data_source: Optional[DataSource] = None  # set only when it must be created
    regions: Tuple[IntergenicRegion, ...] = ()
    locations: Tuple[Location, ...] = ()
    genes: Tuple[Gene, ...] = ()
