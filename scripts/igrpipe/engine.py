"""
Intergenic Region Derivation Engine

Runs the whole job against an EntityStore:

    select contigs -> group genes by annotation version -> split by strand
    -> pair neighbors -> synthesize regions on a worker pool -> dedup sink
    -> one terminal write

Contigs are handled one at a time; the pairs of each strand-specific
sequence fan out over a bounded pool. Synthesis tasks are pure, so results
can arrive in any order and are merged by pair key in the sink.
"""

import logging
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List, Optional

from .commit import (
    DEFAULT_DATA_SET,
    DEFAULT_DATA_SET_DESCRIPTION,
    DEFAULT_DATA_SET_URL,
    DEFAULT_DATA_SOURCE,
    Provenance,
    build_batch,
    commit,
    resolve_provenance,
)
from .grouping import group_genes, partition_by_strand
from .models import Contig, Gene, WriteBatch
from .pairs import GenePair, make_pairs
from .selector import ContigSelection, select_contigs
from .sink import DedupSink
from .store import EntityStore, WriteResult
from .synthesis import SynthesisContext, synthesize_region

logger = logging.getLogger(__name__)

EXECUTORS = ("thread", "process")


@dataclass
class RunSummary:
    """Counts reported at the end of a run."""
    contigs_processed: int = 0
    contigs_skipped: int = 0
    genes_excluded: int = 0
    pairs: int = 0
    regions: int = 0
    overlap_skips: int = 0
    boundary_skips: int = 0
    genes_updated: int = 0
    written: bool = False

    def as_dict(self) -> Dict[str, int]:
        return {
            "contigs_processed": self.contigs_processed,
            "contigs_skipped": self.contigs_skipped,
            "genes_excluded": self.genes_excluded,
            "pairs": self.pairs,
            "regions": self.regions,
            "overlap_skips": self.overlap_skips,
            "boundary_skips": self.boundary_skips,
            "genes_updated": self.genes_updated,
            "written": int(self.written),
        }


class IntergenicRegionEngine:
    """
    Derive intergenic regions for every contig that has none yet.

    Args:
        store: Entity store to read from and write to
        workers: Worker pool size (default: CPU count)
        executor: 'thread' or 'process'
        data_source_name, data_set_name, data_set_description, data_set_url:
            Provenance labels
    """

    def __init__(
        self,
        store: EntityStore,
        workers: Optional[int] = None,
        executor: str = "thread",
        data_source_name: str = DEFAULT_DATA_SOURCE,
        data_set_name: str = DEFAULT_DATA_SET,
        data_set_description: Optional[str] = DEFAULT_DATA_SET_DESCRIPTION,
        data_set_url: Optional[str] = DEFAULT_DATA_SET_URL,
    ):
        if executor not in EXECUTORS:
            raise ValueError(f"executor must be one of {EXECUTORS}, got {executor!r}")
        if workers is not None and workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.store = store
        self.workers = workers or os.cpu_count() or 1
        self.executor = executor
        self.data_source_name = data_source_name
        self.data_set_name = data_set_name
        self.data_set_description = data_set_description
        self.data_set_url = data_set_url

        self._reset()

    def _reset(self) -> None:
        """Per-run state; every run starts from an empty sink."""
        self.sink = DedupSink()
        self.genes: Dict[str, Gene] = {}
        self.summary = RunSummary()

    def _make_executor(self) -> Executor:
        if self.executor == "process":
            return ProcessPoolExecutor(max_workers=self.workers)
        return ThreadPoolExecutor(max_workers=self.workers)

    def select(self) -> ContigSelection:
        return select_contigs(self.store)

    def _fan_out(self, pool: Executor, pairs: List[GenePair], context: SynthesisContext) -> None:
        future_to_pair = {
            pool.submit(synthesize_region, pair, context): pair
            for pair in pairs
        }
        for future in as_completed(future_to_pair):
            pair = future_to_pair[future]
            if self.sink.put(pair.key, future.result()):
                continue
            # both neighbors present: they overlap or abut; otherwise a gene
            # touches the contig start or end
            if pair.preceding is not None and pair.following is not None:
                self.summary.overlap_skips += 1
            else:
                self.summary.boundary_skips += 1
        self.summary.pairs += len(pairs)

    def process_contig(self, contig: Contig, pool: Executor, context: SynthesisContext) -> int:
        """
        Synthesize the regions of one contig into the sink.

        Returns:
            Number of regions in the sink after this contig
        """
        genes = self.store.list_genes_on(contig)
        grouped = group_genes(genes)
        self.summary.genes_excluded += len(grouped.excluded)

        for version in grouped.ordered_versions():
            ordered = grouped.groups[version]
            for gene in ordered:
                self.genes[gene.primary_identifier] = gene
            for strand_genes in partition_by_strand(ordered):
                self._fan_out(pool, make_pairs(strand_genes), context)

        logger.info(
            f"{contig.kind} {contig.primary_identifier}: {len(genes)} genes "
            f"({len(grouped.excluded)} without location), {len(self.sink)} regions so far"
        )
        return len(self.sink)

    def synthesize(self, contigs: List[Contig], provenance: Provenance) -> None:
        context = SynthesisContext(data_set_name=provenance.data_set.name)
        with self._make_executor() as pool:
            for contig in contigs:
                self.process_contig(contig, pool, context)
                self.summary.contigs_processed += 1

    def build(self, provenance: Provenance) -> WriteBatch:
        regions = self.sink.regions()
        batch = build_batch(regions, self.genes, provenance)
        self.summary.regions = len(batch.regions)
        self.summary.genes_updated = len(batch.genes)
        return batch

    def run(self, dry_run: bool = False) -> RunSummary:
        """
        Execute the job.

        Args:
            dry_run: Synthesize and count, but do not write

        Returns:
            RunSummary for this run

        Raises:
            StoreError: if reading or the terminal write fails
        """
        self._reset()
        selection = self.select()
        self.summary.contigs_skipped = len(selection.skipped)

        provenance = resolve_provenance(
            self.store,
            data_source_name=self.data_source_name,
            data_set_name=self.data_set_name,
            description=self.data_set_description,
            url=self.data_set_url,
        )
        self.synthesize(selection.to_process, provenance)
        batch = self.build(provenance)

        if self.summary.overlap_skips:
            logger.info(f"Skipped {self.summary.overlap_skips} gene pairs with overlapping neighbors.")
        if self.summary.boundary_skips:
            logger.info(f"Skipped {self.summary.boundary_skips} pairs whose gene touches the contig start or end.")

        if dry_run:
            logger.info(f"Dry run: {len(batch.regions)} regions not written.")
            return self.summary

        result: Optional[WriteResult] = commit(self.store, batch)
        self.summary.written = result is not None
        return self.summary


def create_intergenic_regions(store: EntityStore, **kwargs) -> RunSummary:
    """Run the engine once with default settings overridden by ``kwargs``."""
    return IntergenicRegionEngine(store, **kwargs).run()
