"""
Pytest configuration and fixtures for intergenic region tests.
"""

import sys
import tempfile
from pathlib import Path

import pandas as pd
import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from igrpipe.models import CHROMOSOME, SUPERCONTIG, Contig, Gene, Location
from igrpipe.store import CONTIG_COLUMNS, GENE_COLUMNS, InMemoryStore


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Entity Fixtures
# ============================================================================

@pytest.fixture
def chromosome():
    """A 1000 bp chromosome."""
    return Contig("glyma.Wm82.gnm2.Gm01", CHROMOSOME, 1000, organism="Glycine max", strain="Williams 82")


@pytest.fixture
def supercontig():
    """A 500 bp supercontig."""
    return Contig("glyma.Wm82.gnm2.scaffold_21", SUPERCONTIG, 500, organism="Glycine max", strain="Williams 82")


@pytest.fixture
def make_gene():
    """Factory fixture for genes with a location on their contig."""
    def _make_gene(
        gene_id,
        contig,
        start,
        end,
        strand="1",
        annotation_version="ann1",
        name=None,
        secondary_identifier=None,
    ):
        return Gene(
            primary_identifier=gene_id,
            contig=contig,
            location=Location(start, end, strand, located_on=contig, feature=gene_id),
            secondary_identifier=secondary_identifier,
            name=name if name is not None else gene_id,
            organism=contig.organism,
            strain=contig.strain,
            assembly_version="gnm2",
            annotation_version=annotation_version,
        )
    return _make_gene


@pytest.fixture
def sample_genes(chromosome, supercontig, make_gene):
    """
    Genes on one chromosome (both strands) and one supercontig.

    Chromosome forward: G1 100-200, G2 400-500 -> |G1, G1|G2, G2|
    Chromosome reverse: G3 300-350           -> |G3, G3|
    Supercontig forward: G4 50-60            -> |G4, G4|
    """
    return [
        make_gene("G1", chromosome, 100, 200, "1"),
        make_gene("G2", chromosome, 400, 500, "+"),
        make_gene("G3", chromosome, 300, 350, "-1"),
        make_gene("G4", supercontig, 50, 60, None),
    ]


@pytest.fixture
def memory_store(chromosome, supercontig, sample_genes):
    """In-memory store holding the sample genes."""
    return InMemoryStore(contigs=[chromosome, supercontig], genes=sample_genes)


# ============================================================================
# TSV Store Fixtures
# ============================================================================

@pytest.fixture
def tsv_store_dir(temp_dir):
    """
    Write a TSV store mirroring ``sample_genes`` plus one gene without a
    location (G5).
    """
    contigs = pd.DataFrame([
        ["glyma.Wm82.gnm2.Gm01", "chromosome", "1000", "Glycine max", "Williams 82"],
        ["glyma.Wm82.gnm2.scaffold_21", "supercontig", "500", "Glycine max", "Williams 82"],
    ], columns=CONTIG_COLUMNS)

    def gene_row(gene_id, kind, contig, start, end, strand):
        return {
            "primary_identifier": gene_id,
            "secondary_identifier": f"{gene_id}.sec",
            "name": gene_id,
            "organism": "Glycine max",
            "strain": "Williams 82",
            "assembly_version": "gnm2",
            "annotation_version": "ann1",
            "contig_kind": kind,
            "contig": contig,
            "start": start,
            "end": end,
            "strand": strand,
            "upstream_intergenic_region": "",
            "downstream_intergenic_region": "",
        }

    genes = pd.DataFrame([
        gene_row("G1", "chromosome", "glyma.Wm82.gnm2.Gm01", "100", "200", "1"),
        gene_row("G2", "chromosome", "glyma.Wm82.gnm2.Gm01", "400", "500", "+"),
        gene_row("G3", "chromosome", "glyma.Wm82.gnm2.Gm01", "300", "350", "-1"),
        gene_row("G4", "supercontig", "glyma.Wm82.gnm2.scaffold_21", "50", "60", ""),
        gene_row("G5", "chromosome", "glyma.Wm82.gnm2.Gm01", "", "", "1"),
    ], columns=GENE_COLUMNS)

    contigs.to_csv(temp_dir / "contigs.tsv", sep="\t", index=False)
    genes.to_csv(temp_dir / "genes.tsv", sep="\t", index=False)
    return temp_dir


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config(temp_dir):
    """Provide a sample configuration dictionary."""
    return {
        "store": {
            "path": str(temp_dir),
        },
        "resources": {
            "workers": 4,
            "executor": "thread",
        },
        "provenance": {
            "data_source": "LIS post-processor",
            "data_set": {
                "name": "LIS intergenic regions",
                "url": "https://legumeinfo.org",
            },
        },
        "logging": {
            "level": "INFO",
        },
    }
