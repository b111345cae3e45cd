#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Create Intergenic Region Features
=================================

Purpose:
    Derive IntergenicRegion features between adjacent genes on every
    chromosome and supercontig that has no intergenic regions yet, and set
    each neighboring gene's upstream/downstream region reference.

Required Environment:
    - pandas (TSV entity store)
    - pyyaml (configuration)

Input:
    - {STORE}/contigs.tsv - Chromosomes and supercontigs
    - {STORE}/genes.tsv - Genes with locations and annotation versions

Output:
    - {STORE}/intergenic_regions.tsv - Derived regions (appended)
    - {STORE}/genes.tsv - Updated upstream/downstream region references
    - {STORE}/data_sources.tsv, {STORE}/data_sets.tsv - Provenance

Adjustable Parameters:
    --config FILE: YAML configuration
    --store DIR: Entity store directory (overrides config/IGR_STORE_PATH)
    --jobs N: Worker pool size (default: CPU count)
    --executor thread|process: Worker pool type (default: thread)
    --list: List contigs still to process
    --dry-run: Synthesize and report without writing

Usage:
    # List contigs that still need regions
    python create_intergenic_regions.py --store /data/warehouse --list

    # Preview counts
    python create_intergenic_regions.py --config config.yaml --dry-run

    # Run
    python create_intergenic_regions.py --config config.yaml --jobs 8
"""

import argparse
import logging
import sys
from typing import Optional

import yaml

from igrpipe.config_parser import (
    apply_env_overrides,
    engine_kwargs,
    get_nested,
    load_config,
    print_config_summary,
    set_nested,
    validate_config,
)
from igrpipe.engine import EXECUTORS, IntergenicRegionEngine
from igrpipe.store import StoreError, TsvStore

logger = logging.getLogger("create_intergenic_regions")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create intergenic region features between adjacent genes")
    parser.add_argument("--config", "-c", help="YAML configuration file")
    parser.add_argument("--store", "-s", help="Entity store directory")
    parser.add_argument("--jobs", "-j", type=int, help="Worker pool size (default: CPU count)")
    parser.add_argument("--executor", choices=EXECUTORS, help="Worker pool type (default: thread)")
    parser.add_argument("--list", action="store_true", help="List contigs still to process")
    parser.add_argument("--dry-run", action="store_true", help="Synthesize regions without writing")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    config = apply_env_overrides(load_config(args.config))
    if args.store:
        set_nested(config, "store.path", args.store)
    if args.jobs is not None:
        set_nested(config, "resources.workers", args.jobs)
    if args.executor:
        set_nested(config, "resources.executor", args.executor)
    return config


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"Error parsing YAML: {e}", file=sys.stderr)
        return 1

    is_valid, errors = validate_config(config)
    if not is_valid:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    setup_logging(get_nested(config, "logging.level", "INFO"), get_nested(config, "logging.file"))
    print_config_summary(config)

    try:
        store = TsvStore(get_nested(config, "store.path"))
        engine = IntergenicRegionEngine(store, **engine_kwargs(config))

        if args.list:
            selection = engine.select()
            print(f"Found {len(selection.to_process)} contigs to process "
                  f"({len(selection.skipped)} already have regions):")
            for i, contig in enumerate(selection.to_process, 1):
                print(f"{i:4d}. {contig.kind} {contig.primary_identifier} (length {contig.length:,})")
            return 0

        summary = engine.run(dry_run=args.dry_run)
    except StoreError as e:
        logger.error(f"Store failure, nothing written: {e}")
        return 1

    print("\nIntergenic regions complete!" if not args.dry_run else "\nDry run complete!")
    for name, value in summary.as_dict().items():
        print(f"  {name.replace('_', ' ').capitalize()}: {value:,}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
