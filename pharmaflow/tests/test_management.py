import pytest
from sqlalchemy import func, select

from pharmaflow.app.db.models.models_v1 import (
    ArchiveBundle,
    ArchivedOrder,
    CatalogRecord,
    FulfillmentRow,
    OrderRow,
    ProcessRow,
)
from pharmaflow.services.archive import archive_and_clear
from pharmaflow.services.errors import ValidationError
from pharmaflow.services.management import ClearStage, clear_all_tables, clear_stage

ROWS = [
    {"substance": "AMOX", "units_a": 10, "quantity_order": 3, "final_order": 1},
    {"substance": "PARA", "units_a": 20, "quantity_order": 1, "final_order": 2},
]


def _count(db_session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def _live(db_session) -> tuple[int, int, int]:
    return (
        _count(db_session, OrderRow),
        _count(db_session, FulfillmentRow),
        _count(db_session, ProcessRow),
    )


def test_clear_processes_only(db_session, pipeline):
    pipeline(ROWS)

    result = clear_stage(db_session, ClearStage.processes)
    db_session.commit()

    assert result.counts == {"process_rows": 2}
    assert result.blob_ids == []
    assert _live(db_session) == (2, 2, 0)


def test_clear_fulfillment_takes_processes_with_it(db_session, pipeline):
    pipeline(ROWS)

    result = clear_stage(db_session, "fulfillment")
    db_session.commit()

    assert result.counts == {"process_rows": 2, "fulfillment_rows": 2}
    assert _live(db_session) == (2, 0, 0)


def test_clear_orders_cascades_leaf_to_root(db_session, pipeline):
    """
    GIVEN orders that went all the way to process rows
    WHEN the order stage is cleared
    THEN no fulfillment or process row is left pointing at a deleted order
    """
    pipeline(ROWS)

    result = clear_stage(db_session, ClearStage.orders)
    db_session.commit()

    assert result.counts == {"process_rows": 2, "fulfillment_rows": 2, "order_rows": 2}
    assert _live(db_session) == (0, 0, 0)
    # catalog is not a stage of the order pipeline
    assert _count(db_session, CatalogRecord) == 2


def test_clear_archives_leaves_live_stages(db_session, pipeline):
    pipeline(ROWS[:1])
    archive_and_clear(db_session)
    db_session.commit()
    pipeline(ROWS[1:])

    result = clear_stage(db_session, ClearStage.archives)
    db_session.commit()

    assert result.counts["archive_bundles"] == 1
    assert _count(db_session, ArchiveBundle) == 0
    assert _count(db_session, ArchivedOrder) == 0
    assert _live(db_session) == (1, 1, 1)


def test_clear_catalog_returns_image_ids_and_zeroes_orders(db_session, pipeline, blobs):
    ids = pipeline(ROWS)
    blob_id = blobs.put_blob(b"img", suffix=".png")
    db_session.get(CatalogRecord, ids["AMOX"]["catalog_id"]).image_blob_id = blob_id
    db_session.commit()

    result = clear_stage(db_session, ClearStage.catalog)
    db_session.commit()

    assert result.counts == {"catalog_records": 2}
    assert result.blob_ids == [blob_id]
    # rows are gone, the file is the caller's to delete
    assert blobs.get_blob_url(blob_id) is not None

    db_session.expire_all()
    units = db_session.execute(select(OrderRow.unit_quantity_order)).scalars().all()
    assert units == [0, 0]


def test_unknown_stage(db_session):
    with pytest.raises(ValidationError):
        clear_stage(db_session, "everything")


def test_clear_all_tables(db_session, pipeline, blobs):
    ids = pipeline(ROWS)
    blob_id = blobs.put_blob(b"img", suffix=".png")
    db_session.get(CatalogRecord, ids["PARA"]["catalog_id"]).image_blob_id = blob_id
    db_session.commit()

    result = clear_all_tables(db_session)
    db_session.commit()

    assert result.counts["catalog_records"] == 2
    assert result.counts["order_rows"] == 2
    assert result.counts["archive_bundles"] == 0
    assert result.blob_ids == [blob_id]
    assert _live(db_session) == (0, 0, 0)
    assert _count(db_session, CatalogRecord) == 0
