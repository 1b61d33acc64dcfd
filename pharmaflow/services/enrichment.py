"""
Read-side join of stage rows with the catalog.

Live list endpoints and the archive snapshot both go through these
functions, so an archived row looks exactly like the live row it replaced.
A missing upstream row (order or fulfillment) is tolerated: the projection
falls back to zero/empty values instead of failing.
"""
from __future__ import annotations

from decimal import Decimal

from pharmaflow.app.db.models.models_v1 import (
    CatalogRecord,
    FulfillmentRow,
    OrderRow,
    ProcessRow,
)
from pharmaflow.app.schemas.fulfillment import FulfillmentRead
from pharmaflow.app.schemas.orders import OrderRowRead
from pharmaflow.app.schemas.processes import ProcessRead
from pharmaflow.services.blob_store import BlobStore, blob_url
from pharmaflow.services.costs import final_package_amount, final_unit_amount, total_price


def project_order(
    order: OrderRow,
    record: CatalogRecord | None,
    blobs: BlobStore | None = None,
) -> OrderRowRead:
    return OrderRowRead(
        id=order.id,
        row_number=order.row_number,
        substance=order.substance,
        current_balance=order.current_balance,
        quantity_order=order.quantity_order,
        real_order=order.real_order,
        final_balance=order.final_balance,
        unit_quantity_order=order.unit_quantity_order,
        unit_real_order=order.unit_real_order,
        urgent=order.urgent,
        name=record.name if record else "",
        company=record.company if record else "",
        units_per_box_a=record.units_per_box_a if record else 0,
        price=float(record.price) if record else 0.0,
        image_blob_id=record.image_blob_id if record else None,
        image_url=blob_url(blobs, record.image_blob_id) if record else None,
    )


def project_fulfillment(
    fulfillment: FulfillmentRow,
    order: OrderRow | None,
    record: CatalogRecord | None,
    blobs: BlobStore | None = None,
) -> FulfillmentRead:
    package_amount = final_package_amount(fulfillment.final_order, fulfillment.bonus)
    if order is None:
        record = None
    price = record.price if record else Decimal("0")

    return FulfillmentRead(
        id=fulfillment.id,
        order_id=fulfillment.order_id,
        row_number=order.row_number if order else 0,
        substance=order.substance if order else "",
        name=record.name if record else "",
        company=record.company if record else "",
        unit_real_order=order.unit_real_order if order else 0,
        units_per_box_b=record.units_per_box_b if record else 0,
        price=float(price),
        final_order=fulfillment.final_order,
        bonus=fulfillment.bonus,
        confirmed=fulfillment.confirmed,
        final_package_amount=package_amount,
        final_unit_amount=final_unit_amount(package_amount, record.units_per_box_b if record else 0),
        total_price=float(total_price(fulfillment.final_order, price)) if order else 0.0,
        urgent=order.urgent if order else False,
        image_url=blob_url(blobs, record.image_blob_id) if record else None,
    )


def project_process(
    process: ProcessRow,
    fulfillment: FulfillmentRow | None,
    order: OrderRow | None,
    record: CatalogRecord | None,
    blobs: BlobStore | None = None,
) -> ProcessRead:
    if order is None:
        record = None
    package_amount = (
        final_package_amount(fulfillment.final_order, fulfillment.bonus) if fulfillment else 0
    )
    units_b = record.units_per_box_b if record else 0

    return ProcessRead(
        id=process.id,
        fulfillment_id=process.fulfillment_id,
        order_id=process.order_id,
        row_number=order.row_number if order else 0,
        substance=order.substance if order else "",
        name=record.name if record else "",
        box_number=process.box_number,
        status=process.status,
        final_package_amount=package_amount,
        units_per_box_b=units_b,
        final_unit_amount=final_unit_amount(package_amount, units_b),
        urgent=order.urgent if order else False,
        image_url=blob_url(blobs, record.image_blob_id) if record else None,
    )
