import pytest
from sqlalchemy import func, select

from pharmaflow.app.db.models.models_v1 import FulfillmentRow, OrderRow, ProcessRow
from pharmaflow.services.bulk_upsert import CatalogCandidate, upsert_catalog_batch
from pharmaflow.services.errors import NotFoundError, ValidationError
from pharmaflow.services.orders import (
    delete_order_row,
    list_orders,
    next_row_number,
    save_order_row,
)


def _count(db_session, model, *where) -> int:
    stmt = select(func.count()).select_from(model)
    for cond in where:
        stmt = stmt.where(cond)
    return db_session.execute(stmt).scalar_one()


def test_save_order_row_derives_balances_and_units(db_session):
    upsert_catalog_batch(db_session, [CatalogCandidate(substance="AMOX", units_per_box_a=12, price=3)])

    order_id = save_order_row(
        db_session,
        row_number=1,
        substance="AMOX",
        current_balance=7,
        quantity_order=5,
        real_order=4,
    )
    db_session.commit()

    o = db_session.get(OrderRow, order_id)
    assert o.final_balance == 12
    assert o.unit_quantity_order == 60
    assert o.unit_real_order == 48


def test_save_order_row_replaces_by_row_number(db_session):
    first = save_order_row(db_session, row_number=1, substance="AMOX", quantity_order=1)
    again = save_order_row(db_session, row_number=1, substance="PARA", quantity_order=9)
    db_session.commit()

    assert first == again
    o = db_session.get(OrderRow, first)
    assert (o.substance, o.quantity_order) == ("PARA", 9)
    assert _count(db_session, OrderRow) == 1


def test_unknown_substance_has_zero_pack_factor(db_session):
    order_id = save_order_row(db_session, row_number=1, substance="NEW", quantity_order=3)
    db_session.commit()

    o = db_session.get(OrderRow, order_id)
    assert o.unit_quantity_order == 0
    assert o.final_balance == 3

    view = list_orders(db_session)[0]
    assert (view.name, view.price, view.image_url) == ("", 0.0, None)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"row_number": 1, "substance": "  "},
        {"row_number": 0, "substance": "AMOX"},
        {"row_number": 1, "substance": "AMOX", "quantity_order": -1},
    ],
)
def test_save_order_row_rejects_bad_input(db_session, kwargs):
    with pytest.raises(ValidationError):
        save_order_row(db_session, **kwargs)


def test_next_row_number(db_session):
    assert next_row_number(db_session) == 1

    save_order_row(db_session, row_number=5, substance="AMOX")
    db_session.commit()

    assert next_row_number(db_session) == 6


def test_list_orders_is_enriched_from_catalog(db_session, blobs):
    blob_id = blobs.put_blob(b"png-bytes", suffix=".png")
    upsert_catalog_batch(
        db_session,
        [
            CatalogCandidate(
                substance="AMOX",
                name="Amoxicillin",
                company="ACME",
                units_per_box_a=10,
                price=2.5,
                image_blob_id=blob_id,
            )
        ],
    )
    save_order_row(db_session, row_number=1, substance="AMOX", quantity_order=2)
    db_session.commit()

    (view,) = list_orders(db_session, blobs=blobs)
    assert (view.name, view.company, view.units_per_box_a, view.price) == ("Amoxicillin", "ACME", 10, 2.5)
    assert view.image_url == f"/blobs/{blob_id}"


def test_delete_order_cascades_downstream(db_session, pipeline):
    """
    GIVEN an order row with a fulfillment row and a process row
    WHEN the order row is deleted
    THEN nothing references it anymore
    """
    ids = pipeline(
        [
            {"substance": "AMOX", "final_order": 10},
            {"substance": "PARA", "final_order": 4},
        ]
    )
    order_id = ids["AMOX"]["order_id"]

    delete_order_row(db_session, order_id)
    db_session.commit()

    assert db_session.get(OrderRow, order_id) is None
    assert _count(db_session, FulfillmentRow, FulfillmentRow.order_id == order_id) == 0
    assert _count(db_session, ProcessRow, ProcessRow.order_id == order_id) == 0
    assert _count(db_session, ProcessRow, ProcessRow.fulfillment_id == ids["AMOX"]["fulfillment_id"]) == 0

    # the other row is untouched
    assert _count(db_session, FulfillmentRow) == 1
    assert _count(db_session, ProcessRow) == 1


def test_delete_unknown_order(db_session):
    with pytest.raises(NotFoundError):
        delete_order_row(db_session, 42)
