"""
Catalog batch upsert with duplicate detection.

Rules, per candidate and in input order:

- empty substance (after trim)            -> skipped, no outcome
- negative pack size / price              -> rejected (reason=invalid)
- substance seen earlier in the batch     -> duplicate (duplicate_in_batch)
- substance already stored:
    * edit hint == stored record id       -> updated (full field replace)
    * otherwise                           -> duplicate (duplicate_in_store)
- unknown substance                       -> created, visible to later rows

Duplicates never abort the batch; every other row is written. The single
record save path goes through here too (batch of one), so there is one
duplicate policy.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from pharmaflow.app.db.models.core_types import UpsertAction, UpsertReason
from pharmaflow.app.db.models.models_v1 import CatalogRecord
from pharmaflow.services.catalog import (
    DEFAULT_CHUNK_SIZE,
    chunked,
    normalize_substance,
    refresh_orders_for_substance,
)

logger = logging.getLogger(__name__)


@dataclass
class CatalogCandidate:
    substance: str
    name: str = ""
    company: str = ""
    units_per_box_a: int = 0
    units_per_box_b: int = 0
    price: Decimal | float | int = 0
    image_blob_id: str | None = None
    # edit hint: id of the catalog record this row is editing
    current_id: int | None = None


@dataclass
class UpsertOutcome:
    substance: str
    action: UpsertAction
    id: int | None = None
    reason: UpsertReason | None = None
    message: str | None = None

    @property
    def duplicate(self) -> bool:
        return self.action == UpsertAction.duplicate


@dataclass
class UpsertSummary:
    created: int = 0
    updated: int = 0
    duplicates: int = 0
    rejected: int = 0
    duplicate_substances: list[str] = field(default_factory=list)


@dataclass
class UpsertReport:
    results: list[UpsertOutcome] = field(default_factory=list)
    summary: UpsertSummary = field(default_factory=UpsertSummary)

    def add(self, outcome: UpsertOutcome) -> None:
        self.results.append(outcome)
        s = self.summary
        if outcome.action == UpsertAction.created:
            s.created += 1
        elif outcome.action == UpsertAction.updated:
            s.updated += 1
        elif outcome.action == UpsertAction.duplicate:
            s.duplicates += 1
            s.duplicate_substances.append(outcome.substance)
        else:
            s.rejected += 1


def _validation_problem(c: CatalogCandidate) -> str | None:
    if c.units_per_box_a is None or c.units_per_box_a < 0:
        return "units_per_box_a must be >= 0"
    if c.units_per_box_b is None or c.units_per_box_b < 0:
        return "units_per_box_b must be >= 0"
    if c.price is None or Decimal(str(c.price)) < 0:
        return "price must be >= 0"
    return None


def _existing_by_substance(
    db: Session,
    substances: list[str],
    chunk_size: int,
) -> dict[str, CatalogRecord]:
    found: dict[str, CatalogRecord] = {}
    for part in chunked(sorted(set(substances)), chunk_size):
        rows = (
            db.execute(select(CatalogRecord).where(CatalogRecord.substance.in_(part)).with_for_update())
            .scalars()
            .all()
        )
        for rec in rows:
            found[rec.substance] = rec
    return found


def upsert_catalog_batch(
    db: Session,
    candidates: Iterable[CatalogCandidate],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> UpsertReport:
    """
    Apply a batch of catalog rows. Runs in the caller's transaction (no commit).
    """
    candidates = list(candidates)
    report = UpsertReport()

    # one lookup for the whole batch (locked: two batches cannot both create a substance)
    existing = _existing_by_substance(
        db,
        [s for s in (normalize_substance(c.substance) for c in candidates) if s],
        chunk_size,
    )
    seen: set[str] = set()

    for c in candidates:
        substance = normalize_substance(c.substance)
        if not substance:
            continue

        problem = _validation_problem(c)
        if problem:
            report.add(
                UpsertOutcome(
                    substance=substance,
                    action=UpsertAction.rejected,
                    reason=UpsertReason.invalid,
                    message=problem,
                )
            )
            continue

        if substance in seen:
            report.add(
                UpsertOutcome(
                    substance=substance,
                    action=UpsertAction.duplicate,
                    id=existing[substance].id if substance in existing else None,
                    reason=UpsertReason.duplicate_in_batch,
                )
            )
            continue
        seen.add(substance)

        rec = existing.get(substance)
        if rec is not None:
            if c.current_id is not None and rec.id == c.current_id:
                units_a_changed = rec.units_per_box_a != c.units_per_box_a
                rec.name = c.name
                rec.company = c.company
                rec.units_per_box_a = c.units_per_box_a
                rec.units_per_box_b = c.units_per_box_b
                rec.price = Decimal(str(c.price))
                rec.image_blob_id = c.image_blob_id
                db.flush()
                if units_a_changed:
                    refresh_orders_for_substance(db, substance, c.units_per_box_a)
                report.add(UpsertOutcome(substance=substance, action=UpsertAction.updated, id=rec.id))
            else:
                report.add(
                    UpsertOutcome(
                        substance=substance,
                        action=UpsertAction.duplicate,
                        id=rec.id,
                        reason=UpsertReason.duplicate_in_store,
                    )
                )
            continue

        rec = CatalogRecord(
            substance=substance,
            name=c.name,
            company=c.company,
            units_per_box_a=c.units_per_box_a,
            units_per_box_b=c.units_per_box_b,
            price=Decimal(str(c.price)),
            image_blob_id=c.image_blob_id,
        )
        db.add(rec)
        db.flush()  # get rec.id
        existing[substance] = rec
        # orders saved before the record existed still carry zero unit quantities
        refresh_orders_for_substance(db, substance, c.units_per_box_a)
        report.add(UpsertOutcome(substance=substance, action=UpsertAction.created, id=rec.id))

    s = report.summary
    logger.info(
        "catalog upsert: created=%d updated=%d duplicates=%d rejected=%d",
        s.created,
        s.updated,
        s.duplicates,
        s.rejected,
    )
    return report
