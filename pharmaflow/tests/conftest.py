import os
import tempfile

# settings are read at import time; point them away from the real database first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BLOB_ROOT", tempfile.mkdtemp(prefix="pharmaflow-blobs-"))

import pytest  # noqa: E402
from sqlalchemy import create_engine, select  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from pharmaflow.app.db.base import Base  # noqa: E402
from pharmaflow.app.db.models.models_v1 import FulfillmentRow  # noqa: E402
from pharmaflow.services.blob_store import LocalBlobStore  # noqa: E402
from pharmaflow.services.bulk_upsert import CatalogCandidate, upsert_catalog_batch  # noqa: E402
from pharmaflow.services.fulfillment import (  # noqa: E402
    confirm_fulfillment,
    send_to_fulfillment,
    update_fulfillment,
)
from pharmaflow.services.orders import save_order_row  # noqa: E402


@pytest.fixture(scope="function")
def engine():
    """One private in-memory database per test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(bind=eng)
        eng.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blobs(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture
def client(db_session, blobs):
    from fastapi.testclient import TestClient

    from pharmaflow.app.api.deps import get_blob_store, get_db
    from pharmaflow.app.main import app

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_blob_store] = lambda: blobs
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def pipeline(db_session):
    """
    Build catalog -> orders -> Damas -> process for a list of rows.

        ids = pipeline([
            {"substance": "AMOX", "price": 5, "units_a": 10, "units_b": 4,
             "quantity_order": 3, "final_order": 100, "bonus": 10},
        ])

    Returns {substance: {"catalog_id", "order_id", "fulfillment_id"}}.
    `confirm=False` stops after the Damas edit (no process rows).
    """

    def _build(rows, *, confirm=True):
        report = upsert_catalog_batch(
            db_session,
            [
                CatalogCandidate(
                    substance=r["substance"],
                    name=r.get("name", r["substance"].title()),
                    company=r.get("company", "ACME"),
                    units_per_box_a=r.get("units_a", 10),
                    units_per_box_b=r.get("units_b", 4),
                    price=r.get("price", 5),
                )
                for r in rows
            ],
        )
        catalog_ids = {o.substance: o.id for o in report.results}

        ids = {}
        for i, r in enumerate(rows, start=1):
            order_id = save_order_row(
                db_session,
                row_number=i,
                substance=r["substance"],
                current_balance=r.get("current_balance", 0),
                quantity_order=r.get("quantity_order", 1),
                real_order=r.get("real_order", 1),
            )
            ids[r["substance"]] = {"catalog_id": catalog_ids[r["substance"]], "order_id": order_id}

        send_to_fulfillment(db_session)

        by_order = {
            f.order_id: f.id for f in db_session.execute(select(FulfillmentRow)).scalars().all()
        }
        for r in rows:
            entry = ids[r["substance"]]
            entry["fulfillment_id"] = by_order[entry["order_id"]]
            update_fulfillment(
                db_session,
                entry["fulfillment_id"],
                final_order=r.get("final_order", 0),
                bonus=r.get("bonus", 0),
            )

        if confirm:
            confirm_fulfillment(db_session)
        db_session.commit()
        return ids

    return _build
