"""
Adjacent gene pairs.

A strand-specific sequence of N genes yields N+1 pairs:

    (None, g1), (g1, g2), ..., (gN-1, gN), (gN, None)

The two boundary pairs delimit the regions from the contig start to the
first gene and from the last gene to the contig end.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .models import Gene

KEY_SEPARATOR = "|"


def join_fields(preceding: Optional[str], following: Optional[str]) -> str:
    """
    Join two optional gene fields with the pair separator.

    Examples:
        >>> join_fields(None, "G1")
        '|G1'
        >>> join_fields("G1", "G2")
        'G1|G2'
    """
    return (preceding or "") + KEY_SEPARATOR + (following or "")


@dataclass(frozen=True)
class GenePair:
    """Two same-strand neighbors; at most one of them is absent."""
    preceding: Optional[Gene]
    following: Optional[Gene]

    def __post_init__(self):
        if self.preceding is None and self.following is None:
            raise ValueError("GenePair needs at least one gene")

    @property
    def key(self) -> str:
        return join_fields(
            self.preceding.primary_identifier if self.preceding else None,
            self.following.primary_identifier if self.following else None,
        )

    @property
    def anchor(self) -> Gene:
        """The gene that supplies contig and version fields: preceding if present."""
        return self.preceding if self.preceding is not None else self.following


def make_pairs(genes: Sequence[Gene]) -> List[GenePair]:
    """
    Pair each gene with its predecessor, closing with a trailing boundary pair.

    An empty sequence yields no pairs.
    """
    if not genes:
        return []
    pairs = []
    preceding = None
    for following in genes:
        pairs.append(GenePair(preceding, following))
        preceding = following
    pairs.append(GenePair(preceding, None))
    return pairs
