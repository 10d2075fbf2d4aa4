"""Script to recompute stored downtime metrics for milestone-tracked events"""
import argparse
import sys
import os
from typing import Dict, Optional
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from aog_tracker.domain.errors import ConcurrencyError
from aog_tracker.domain.models import AOGEventFilter
from aog_tracker.engine.downtime_calculator import compute_downtime_metrics
from aog_tracker.engine.legacy_adapter import is_legacy_event
from aog_tracker.repositories.aog_event_repo import AOGEventRepository
from aog_tracker.utils.time import parse_iso


def recompute_metrics(
    repo: AOGEventRepository,
    since: Optional[datetime] = None,
    dry_run: bool = False
) -> Dict[str, int]:
    """
    Recompute bucket hours for every milestone-tracked event

    Legacy records are skipped; their metrics are derived on read.
    Events edited by someone else mid-run are counted as conflicts and
    left alone. Returns the counts per outcome.
    """
    counts = {"scanned": 0, "legacy": 0, "unchanged": 0, "updated": 0, "conflicts": 0}

    for event in repo.list_events(AOGEventFilter(start_date=since)):
        counts["scanned"] += 1
        if is_legacy_event(event):
            counts["legacy"] += 1
            continue

        metrics = compute_downtime_metrics(event.milestones(), event.detected_at, event.cleared_at)
        stored = {field: getattr(event, field) for field in metrics.model_dump()}
        if stored == metrics.model_dump():
            counts["unchanged"] += 1
            continue

        print(f'{event.event_id}: {stored} -> {metrics.model_dump()}')
        if not dry_run:
            try:
                repo.update_event(event.event_id, metrics.model_dump(), expected_version=event.version)
            except ConcurrencyError:
                print(f'{event.event_id}: modified during the run, skipped')
                counts["conflicts"] += 1
                continue
        counts["updated"] += 1

    return counts


def main():
    parser = argparse.ArgumentParser(description="Recompute AOG downtime buckets")
    parser.add_argument("--since", type=parse_iso, default=None,
                        help="Only events detected on or after this ISO 8601 instant")
    parser.add_argument("--dry-run", action="store_true", help="Report changes without writing")
    args = parser.parse_args()

    counts = recompute_metrics(AOGEventRepository(), since=args.since, dry_run=args.dry_run)

    print(f'\nScanned: {counts["scanned"]}')
    print(f'Legacy (skipped): {counts["legacy"]}')
    print(f'Unchanged: {counts["unchanged"]}')
    print(f'Conflicts: {counts["conflicts"]}')
    label = "Would update" if args.dry_run else "Updated"
    print(f'{label}: {counts["updated"]}')


if __name__ == '__main__':
    main()
