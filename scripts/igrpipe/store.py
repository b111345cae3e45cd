"""
Entity Store Adapters

The derivation engine talks to the warehouse only through ``EntityStore``:

    list_contigs(kind)          -> [Contig]   ordered by identifier
    list_genes_on(contig)       -> [Gene]
    contains_any_region(contig) -> bool
    find_data_source(name)      -> DataSource | None
    write_batch(batch)          -> WriteResult   (all-or-nothing)

Two implementations are provided:

- InMemoryStore: dict-backed, used by tests and by pipelines that already
  hold their entities in memory.
- TsvStore: a directory of tab-separated tables read and written with pandas.

Table layout for TsvStore:
    contigs.tsv             primary_identifier, kind, length, organism, strain
    genes.tsv               gene fields + contig_kind, contig, start, end, strand
    intergenic_regions.tsv  region fields + location columns
    data_sources.tsv        name
    data_sets.tsv           name, description, version, url, data_source
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

import pandas as pd

from .models import (
    CONTIG_KINDS,
    Contig,
    DataSet,
    DataSource,
    Gene,
    IntergenicRegion,
    Location,
    WriteBatch,
)

logger = logging.getLogger(__name__)


# -----------------------
# Exceptions
# -----------------------
class StoreError(Exception):
    """Entity store base exception."""


class StoreReadError(StoreError):
    """A table could not be read or holds malformed rows."""


class StoreWriteError(StoreError):
    """The terminal batch write failed; nothing was applied."""


@dataclass(frozen=True)
class WriteResult:
    """Counts of objects stored by one batch write."""
    regions: int
    locations: int
    genes: int
    data_source_created: bool


def _check_kind(kind: str) -> None:
    if kind not in CONTIG_KINDS:
        raise ValueError(f"Unknown contig kind: {kind!r}")


def validate_batch(batch: WriteBatch, known_gene_ids: Iterable[str]) -> None:
    """
    Reject a batch that would leave the store inconsistent.

    Raises:
        StoreWriteError: on a region whose location sits on another contig,
            a location without a region, or an update to an unknown gene
    """
    region_ids = {r.primary_identifier for r in batch.regions}
    for region in batch.regions:
        located_on = region.location.located_on
        if located_on is None or located_on.key != region.contig.key:
            raise StoreWriteError(
                f"Region {region.primary_identifier} location is not on {region.contig.primary_identifier}"
            )
    for location in batch.locations:
        if location.feature not in region_ids:
            raise StoreWriteError(f"Location references unknown feature {location.feature!r}")

    known = set(known_gene_ids)
    for gene in batch.genes:
        if gene.primary_identifier not in known:
            raise StoreWriteError(f"Cannot update unknown gene {gene.primary_identifier}")

    if batch.regions and batch.data_set is None:
        raise StoreWriteError("Regions must be written with a DataSet")


class EntityStore(ABC):
    """Read access to genes/contigs and one atomic write for derived features."""

    @abstractmethod
    def list_contigs(self, kind: str) -> List[Contig]:
        ...

    @abstractmethod
    def list_genes_on(self, contig: Contig) -> List[Gene]:
        ...

    @abstractmethod
    def contains_any_region(self, contig: Contig) -> bool:
        ...

    @abstractmethod
    def find_data_source(self, name: str) -> Optional[DataSource]:
        ...

    @abstractmethod
    def write_batch(self, batch: WriteBatch) -> WriteResult:
        ...


class InMemoryStore(EntityStore):
    """
    Dict-backed store.

    Genes handed out are copies, so callers never mutate stored state outside
    ``write_batch``.
    """

    def __init__(
        self,
        contigs: Iterable[Contig] = (),
        genes: Iterable[Gene] = (),
        regions: Iterable[IntergenicRegion] = (),
        data_sources: Iterable[DataSource] = (),
    ):
        self.contigs: Dict[Tuple[str, str], Contig] = {c.key: c for c in contigs}
        self.genes: Dict[str, Gene] = {g.primary_identifier: replace(g) for g in genes}
        self.regions: Dict[str, IntergenicRegion] = {r.primary_identifier: r for r in regions}
        self.locations: Dict[str, Location] = {}
        self.data_sources: Dict[str, DataSource] = {d.name: d for d in data_sources}
        self.data_sets: List[DataSet] = []
        self.write_count = 0

    def list_contigs(self, kind: str) -> List[Contig]:
        _check_kind(kind)
        contigs = [c for c in self.contigs.values() if c.kind == kind]
        return sorted(contigs, key=lambda c: c.primary_identifier)

    def list_genes_on(self, contig: Contig) -> List[Gene]:
        genes = [g for g in self.genes.values() if g.contig.key == contig.key]
        return [replace(g) for g in sorted(genes, key=lambda g: g.primary_identifier)]

    def contains_any_region(self, contig: Contig) -> bool:
        return any(r.contig.key == contig.key for r in self.regions.values())

    def find_data_source(self, name: str) -> Optional[DataSource]:
        return self.data_sources.get(name)

    def write_batch(self, batch: WriteBatch) -> WriteResult:
        validate_batch(batch, self.genes.keys())

        created = False
        if batch.data_source is not None and batch.data_source.name not in self.data_sources:
            self.data_sources[batch.data_source.name] = batch.data_source
            created = True
        if batch.data_set is not None:
            self.data_sets.append(batch.data_set)
        for region in batch.regions:
            self.regions[region.primary_identifier] = region
        for location in batch.locations:
            self.locations[location.feature] = location
        for gene in batch.genes:
            self.genes[gene.primary_identifier] = replace(gene)
        self.write_count += 1

        return WriteResult(
            regions=len(batch.regions),
            locations=len(batch.locations),
            genes=len(batch.genes),
            data_source_created=created,
        )


# ============================================================================
# TSV-backed store
# ============================================================================

CONTIG_COLUMNS = ["primary_identifier", "kind", "length", "organism", "strain"]

GENE_COLUMNS = [
    "primary_identifier", "secondary_identifier", "name", "organism", "strain",
    "assembly_version", "annotation_version", "contig_kind", "contig",
    "start", "end", "strand",
    "upstream_intergenic_region", "downstream_intergenic_region",
]

REGION_COLUMNS = [
    "primary_identifier", "secondary_identifier", "name", "description",
    "contig_kind", "contig", "start", "end", "strand", "length",
    "organism", "strain", "assembly_version", "annotation_version",
    "adjacent_genes", "data_sets",
]

DATA_SOURCE_COLUMNS = ["name"]
DATA_SET_COLUMNS = ["name", "description", "version", "url", "data_source"]

TABLES = {
    "contigs": CONTIG_COLUMNS,
    "genes": GENE_COLUMNS,
    "intergenic_regions": REGION_COLUMNS,
    "data_sources": DATA_SOURCE_COLUMNS,
    "data_sets": DATA_SET_COLUMNS,
}


def _blank_to_none(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value if value != "" else None


def _none_to_blank(value) -> str:
    return "" if value is None else str(value)


class TsvStore(EntityStore):
    """
    Directory of TSV tables.

    Missing optional tables are treated as empty; ``contigs.tsv`` and
    ``genes.tsv`` are required.
    """

    def __init__(self, directory):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise StoreReadError(f"Store directory not found: {self.directory}")
        self._contigs: Optional[Dict[Tuple[str, str], Contig]] = None
        self._genes_by_contig: Optional[Dict[Tuple[str, str], pd.DataFrame]] = None
        self._region_contigs: Optional[Set[Tuple[str, str]]] = None

    def _path(self, table: str) -> Path:
        return self.directory / f"{table}.tsv"

    def _invalidate(self) -> None:
        """Drop cached gene and region tables after they were rewritten."""
        self._genes_by_contig = None
        self._region_contigs = None

    def _read_table(self, table: str, required: bool = False) -> pd.DataFrame:
        path = self._path(table)
        columns = TABLES[table]
        if not path.exists():
            if required:
                raise StoreReadError(f"Required table not found: {path}")
            return pd.DataFrame(columns=columns)
        try:
            df = pd.read_csv(path, sep="\t", dtype=str, na_filter=False)
        except (OSError, pd.errors.ParserError) as e:
            raise StoreReadError(f"Failed to read {path}: {e}") from e
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=columns)
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise StoreReadError(f"{path} is missing columns: {', '.join(missing)}")
        return df[columns]

    def _load_contigs(self) -> Dict[Tuple[str, str], Contig]:
        if self._contigs is None:
            df = self._read_table("contigs", required=True)
            contigs = {}
            for row in df.itertuples(index=False):
                try:
                    contig = Contig(
                        primary_identifier=row.primary_identifier,
                        kind=row.kind,
                        length=int(row.length),
                        organism=_blank_to_none(row.organism),
                        strain=_blank_to_none(row.strain),
                    )
                except ValueError as e:
                    raise StoreReadError(f"Malformed contig row {row.primary_identifier!r}: {e}") from e
                contigs[contig.key] = contig
            self._contigs = contigs
        return self._contigs

    def list_contigs(self, kind: str) -> List[Contig]:
        _check_kind(kind)
        contigs = [c for c in self._load_contigs().values() if c.kind == kind]
        return sorted(contigs, key=lambda c: c.primary_identifier)

    def _load_genes(self) -> Dict[Tuple[str, str], pd.DataFrame]:
        """genes.tsv read once, split by (contig_kind, contig), rows in identifier order."""
        if self._genes_by_contig is None:
            df = self._read_table("genes", required=True)
            df = df.sort_values("primary_identifier", kind="mergesort")
            self._genes_by_contig = {
                (kind, contig): group
                for (kind, contig), group in df.groupby(["contig_kind", "contig"], sort=False)
            }
        return self._genes_by_contig

    def list_genes_on(self, contig: Contig) -> List[Gene]:
        df = self._load_genes().get(contig.key)
        if df is None:
            return []
        return [self._gene_from_row(row, contig) for row in df.itertuples(index=False)]

    @staticmethod
    def _gene_from_row(row, contig: Contig) -> Gene:
        location = None
        if row.start != "" and row.end != "":
            try:
                location = Location(
                    start=int(row.start),
                    end=int(row.end),
                    strand=_blank_to_none(row.strand),
                    located_on=contig,
                    feature=row.primary_identifier,
                )
            except ValueError:
                # Unusable geometry is left to the grouper to exclude
                logger.debug(f"Gene {row.primary_identifier}: invalid interval {row.start}-{row.end}")
        return Gene(
            primary_identifier=row.primary_identifier,
            contig=contig,
            location=location,
            secondary_identifier=_blank_to_none(row.secondary_identifier),
            name=_blank_to_none(row.name),
            organism=_blank_to_none(row.organism),
            strain=_blank_to_none(row.strain),
            assembly_version=_blank_to_none(row.assembly_version),
            annotation_version=_blank_to_none(row.annotation_version),
            upstream_intergenic_region=_blank_to_none(row.upstream_intergenic_region),
            downstream_intergenic_region=_blank_to_none(row.downstream_intergenic_region),
        )

    def contains_any_region(self, contig: Contig) -> bool:
        if self._region_contigs is None:
            df = self._read_table("intergenic_regions")
            self._region_contigs = set(zip(df["contig_kind"], df["contig"]))
        return contig.key in self._region_contigs

    def find_data_source(self, name: str) -> Optional[DataSource]:
        df = self._read_table("data_sources")
        if (df["name"] == name).any():
            return DataSource(name=name)
        return None

    @staticmethod
    def _region_row(region: IntergenicRegion) -> Dict[str, str]:
        loc = region.location
        return {
            "primary_identifier": region.primary_identifier,
            "secondary_identifier": region.secondary_identifier,
            "name": region.name,
            "description": region.description,
            "contig_kind": region.contig.kind,
            "contig": region.contig.primary_identifier,
            "start": str(loc.start),
            "end": str(loc.end),
            "strand": _none_to_blank(loc.strand),
            "length": str(region.length),
            "organism": _none_to_blank(region.organism),
            "strain": _none_to_blank(region.strain),
            "assembly_version": _none_to_blank(region.assembly_version),
            "annotation_version": _none_to_blank(region.annotation_version),
            "adjacent_genes": ",".join(sorted(region.adjacent_genes)),
            "data_sets": ",".join(sorted(region.data_sets)),
        }

    def _build_tables(self, batch: WriteBatch) -> Dict[str, pd.DataFrame]:
        """Return the post-write contents of every table the batch touches."""
        tables: Dict[str, pd.DataFrame] = {}

        genes_df = self._read_table("genes", required=True)
        validate_batch(batch, genes_df["primary_identifier"])

        if batch.regions:
            regions_df = self._read_table("intergenic_regions")
            new_rows = pd.DataFrame([self._region_row(r) for r in batch.regions], columns=REGION_COLUMNS)
            merged = pd.concat([regions_df, new_rows], ignore_index=True)
            tables["intergenic_regions"] = merged.drop_duplicates(
                subset="primary_identifier", keep="last"
            ).reset_index(drop=True)

        if batch.genes:
            genes_df = genes_df.copy()
            index_by_id = {gid: i for i, gid in zip(genes_df.index, genes_df["primary_identifier"])}
            for gene in batch.genes:
                i = index_by_id[gene.primary_identifier]
                genes_df.at[i, "upstream_intergenic_region"] = _none_to_blank(gene.upstream_intergenic_region)
                genes_df.at[i, "downstream_intergenic_region"] = _none_to_blank(gene.downstream_intergenic_region)
            tables["genes"] = genes_df

        if batch.data_source is not None:
            sources_df = self._read_table("data_sources")
            if not (sources_df["name"] == batch.data_source.name).any():
                row = pd.DataFrame([{"name": batch.data_source.name}], columns=DATA_SOURCE_COLUMNS)
                tables["data_sources"] = pd.concat([sources_df, row], ignore_index=True)

        if batch.data_set is not None:
            sets_df = self._read_table("data_sets")
            ds = batch.data_set
            row = pd.DataFrame([{
                "name": ds.name,
                "description": _none_to_blank(ds.description),
                "version": _none_to_blank(ds.version),
                "url": _none_to_blank(ds.url),
                "data_source": ds.data_source.name,
            }], columns=DATA_SET_COLUMNS)
            tables["data_sets"] = pd.concat([sets_df, row], ignore_index=True)

        return tables

    def write_batch(self, batch: WriteBatch) -> WriteResult:
        """
        Write every table to a temporary file, then swap them all in.

        Each original is copied to ``*.tsv.bak`` before its swap. If any swap
        fails, the tables already swapped are restored from their backups.

        Raises:
            StoreWriteError: if validation, serialization or the swap fails;
                the original tables are left untouched
        """
        staged: List[Tuple[Path, Path]] = []
        try:
            tables = self._build_tables(batch)
            for table, df in tables.items():
                final = self._path(table)
                tmp = final.with_suffix(".tsv.tmp")
                df.to_csv(tmp, sep="\t", index=False)
                staged.append((tmp, final))
        except StoreWriteError:
            self._discard(staged)
            raise
        except Exception as e:
            self._discard(staged)
            raise StoreWriteError(f"Batch write failed: {e}") from e

        # (final, backup) for every table already swapped; backup is None
        # when the table did not exist before
        swapped: List[Tuple[Path, Optional[Path]]] = []
        backups: List[Path] = []
        try:
            for tmp, final in staged:
                backup = None
                if final.exists():
                    backup = final.with_suffix(".tsv.bak")
                    shutil.copy2(final, backup)
                    backups.append(backup)
                os.replace(tmp, final)
                swapped.append((final, backup))
        except OSError as e:
            unrestored = self._restore(swapped)
            self._discard(staged)
            self._remove(b for b in backups if b not in unrestored)
            self._invalidate()
            raise StoreWriteError(f"Batch write failed while replacing tables: {e}") from e

        self._remove(backups)
        self._invalidate()

        return WriteResult(
            regions=len(batch.regions),
            locations=len(batch.locations),
            genes=len(batch.genes),
            data_source_created="data_sources" in tables,
        )

    @staticmethod
    def _restore(swapped: List[Tuple[Path, Optional[Path]]]) -> Set[Path]:
        """Undo swapped tables; return the backups that could not be copied back."""
        unrestored: Set[Path] = set()
        for final, backup in reversed(swapped):
            try:
                if backup is None:
                    final.unlink()
                else:
                    shutil.copy2(backup, final)
            except OSError as e:
                logger.error(f"Could not restore {final} from {backup}: {e}")
                if backup is not None:
                    unrestored.add(backup)
        return unrestored

    @staticmethod
    def _remove(paths: Iterable[Path]) -> None:
        for path in paths:
            if path.exists():
                path.unlink()

    @staticmethod
    def _discard(staged: List[Tuple[Path, Path]]) -> None:
        TsvStore._remove(tmp for tmp, _ in staged)
