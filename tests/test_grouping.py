"""
Tests for gene grouping, strand partitioning and pair generation.
"""

import pytest

from igrpipe.grouping import group_genes, has_geometry, partition_by_strand
from igrpipe.models import Gene, Location, is_forward_strand
from igrpipe.pairs import GenePair, join_fields, make_pairs


def ids(genes):
    return [g.primary_identifier for g in genes]


# ============================================================================
# Tests: Strand Convention
# ============================================================================

class TestIsForwardStrand:
    """Tests for is_forward_strand."""

    @pytest.mark.parametrize("strand", [None, "", "+", "1", " 1 "])
    def test_forward_values(self, strand):
        """Unset, '+' and '1' are forward."""
        assert is_forward_strand(strand) is True

    @pytest.mark.parametrize("strand", ["-", "-1", "0", "."])
    def test_reverse_values(self, strand):
        """Everything else is reverse."""
        assert is_forward_strand(strand) is False


# ============================================================================
# Tests: Gene Grouper
# ============================================================================

class TestGroupGenes:
    """Tests for group_genes."""

    def test_orders_by_start(self, chromosome, make_gene):
        """Genes are ordered by start, not by input order."""
        genes = [
            make_gene("G3", chromosome, 700, 800),
            make_gene("G1", chromosome, 100, 200),
            make_gene("G2", chromosome, 400, 500),
        ]
        grouped = group_genes(genes)
        assert ids(grouped.groups["ann1"]) == ["G1", "G2", "G3"]

    def test_ties_broken_by_identifier(self, chromosome, make_gene):
        """Equal starts are ordered by primary identifier."""
        genes = [
            make_gene("Gb", chromosome, 100, 200),
            make_gene("Ga", chromosome, 100, 150),
        ]
        grouped = group_genes(genes)
        assert ids(grouped.groups["ann1"]) == ["Ga", "Gb"]

    def test_groups_by_annotation_version(self, chromosome, make_gene):
        """Each annotation version gets its own group."""
        genes = [
            make_gene("A1", chromosome, 100, 200, annotation_version="ann1"),
            make_gene("B1", chromosome, 100, 200, annotation_version="ann2"),
            make_gene("A2", chromosome, 400, 500, annotation_version="ann1"),
        ]
        grouped = group_genes(genes)
        assert set(grouped.groups) == {"ann1", "ann2"}
        assert ids(grouped.groups["ann1"]) == ["A1", "A2"]
        assert ids(grouped.groups["ann2"]) == ["B1"]

    def test_ordered_versions(self, chromosome, make_gene):
        """Unversioned genes come first, then versions in order."""
        genes = [
            make_gene("A", chromosome, 100, 200, annotation_version="ann2"),
            make_gene("B", chromosome, 100, 200, annotation_version=None),
            make_gene("C", chromosome, 100, 200, annotation_version="ann1"),
        ]
        assert group_genes(genes).ordered_versions() == [None, "ann1", "ann2"]

    def test_missing_location_excluded(self, chromosome, make_gene):
        """Genes without a location are excluded, not fatal."""
        located = make_gene("G1", chromosome, 100, 200)
        unlocated = Gene(primary_identifier="G2", contig=chromosome, annotation_version="ann1")
        grouped = group_genes([located, unlocated])
        assert ids(grouped.groups["ann1"]) == ["G1"]
        assert ids(grouped.excluded) == ["G2"]

    def test_location_on_other_contig_excluded(self, chromosome, supercontig):
        """A location on another contig is not usable geometry."""
        gene = Gene(
            primary_identifier="G1",
            contig=chromosome,
            location=Location(10, 20, "1", located_on=supercontig),
        )
        assert has_geometry(gene) is False


# ============================================================================
# Tests: Strand Partitioner
# ============================================================================

class TestPartitionByStrand:
    """Tests for partition_by_strand."""

    def test_split_keeps_order(self, chromosome, make_gene):
        """Each strand keeps the original position order."""
        genes = [
            make_gene("G1", chromosome, 100, 200, "1"),
            make_gene("G2", chromosome, 250, 300, "-1"),
            make_gene("G3", chromosome, 400, 500, None),
            make_gene("G4", chromosome, 600, 700, "-"),
        ]
        forward, reverse = partition_by_strand(genes)
        assert ids(forward) == ["G1", "G3"]
        assert ids(reverse) == ["G2", "G4"]

    def test_empty(self):
        """Empty input yields two empty sequences."""
        assert partition_by_strand([]) == ([], [])


# ============================================================================
# Tests: Pair Generator
# ============================================================================

class TestMakePairs:
    """Tests for make_pairs and GenePair."""

    @pytest.mark.parametrize("n", [1, 2, 5])
    def test_n_plus_one(self, chromosome, make_gene, n):
        """N genes yield N+1 pairs."""
        genes = [make_gene(f"G{i}", chromosome, i * 100 + 10, i * 100 + 50) for i in range(n)]
        assert len(make_pairs(genes)) == n + 1

    def test_empty_sequence(self):
        """No genes, no pairs."""
        assert make_pairs([]) == []

    def test_pair_order_and_keys(self, chromosome, make_gene):
        """Pairs walk the sequence with boundary pairs at both ends."""
        genes = [make_gene("G1", chromosome, 100, 200), make_gene("G2", chromosome, 400, 500)]
        assert [p.key for p in make_pairs(genes)] == ["|G1", "G1|G2", "G2|"]

    def test_both_absent_rejected(self):
        """A pair needs at least one gene."""
        with pytest.raises(ValueError):
            GenePair(None, None)

    def test_anchor(self, chromosome, make_gene):
        """Anchor is the preceding gene when present."""
        g1 = make_gene("G1", chromosome, 100, 200)
        g2 = make_gene("G2", chromosome, 400, 500)
        assert GenePair(g1, g2).anchor is g1
        assert GenePair(None, g2).anchor is g2

    def test_join_fields(self):
        """Absent fields become empty strings around the separator."""
        assert join_fields(None, "G1") == "|G1"
        assert join_fields("G1", None) == "G1|"
        assert join_fields(None, None) == "|"
