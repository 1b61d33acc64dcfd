import pytest
from sqlalchemy import select

from pharmaflow.app.db.models.models_v1 import OrderRow
from pharmaflow.services.errors import NotFoundError
from pharmaflow.services.orders import save_order_row, set_urgent
from pharmaflow.services.reorder import reorder_by_urgency, stable_urgent_partition


def _layout(db_session) -> list[tuple[int, str, bool]]:
    rows = db_session.execute(select(OrderRow).order_by(OrderRow.row_number)).scalars().all()
    return [(o.row_number, o.substance, o.urgent) for o in rows]


def _seed(db_session, substances) -> dict[str, int]:
    ids = {}
    for i, s in enumerate(substances, start=1):
        ids[s] = save_order_row(db_session, row_number=i, substance=s, quantity_order=1)
    db_session.commit()
    return ids


def test_stable_urgent_partition_keeps_relative_order():
    rows = [("a", False), ("b", True), ("c", False), ("d", True)]
    out = stable_urgent_partition(rows, lambda r: r[1])
    assert [r[0] for r in out] == ["b", "d", "a", "c"]


def test_flagging_middle_row_moves_it_first(db_session):
    """
    GIVEN rows [1:A, 2:B, 3:C]
    WHEN B is flagged urgent
    THEN B=1, A=2, C=3
    """
    ids = _seed(db_session, ["A", "B", "C"])

    set_urgent(db_session, ids["B"], True)
    db_session.commit()

    assert _layout(db_session) == [(1, "B", True), (2, "A", False), (3, "C", False)]


def test_reorder_is_idempotent(db_session):
    ids = _seed(db_session, ["A", "B", "C"])
    set_urgent(db_session, ids["C"], True)
    db_session.commit()
    first = _layout(db_session)

    reorder_by_urgency(db_session)
    set_urgent(db_session, ids["C"], True)
    db_session.commit()

    assert _layout(db_session) == first == [(1, "C", True), (2, "A", False), (3, "B", False)]


def test_urgent_rows_keep_their_current_relative_order(db_session):
    ids = _seed(db_session, ["A", "B", "C", "D"])

    set_urgent(db_session, ids["D"], True)  # D A B C
    set_urgent(db_session, ids["B"], True)  # D B A C
    db_session.commit()

    assert [s for _, s, _ in _layout(db_session)] == ["D", "B", "A", "C"]


def test_unflagging_does_not_restore_previous_positions(db_session):
    ids = _seed(db_session, ["A", "B", "C"])
    set_urgent(db_session, ids["B"], True)
    set_urgent(db_session, ids["B"], False)
    db_session.commit()

    assert _layout(db_session) == [(1, "B", False), (2, "A", False), (3, "C", False)]


def test_saving_new_urgent_row_renumbers(db_session):
    _seed(db_session, ["A", "B", "C"])

    save_order_row(db_session, row_number=4, substance="D", quantity_order=1, urgent=True)
    db_session.commit()

    assert [s for _, s, _ in _layout(db_session)] == ["D", "A", "B", "C"]
    assert [n for n, _, _ in _layout(db_session)] == [1, 2, 3, 4]


def test_gaps_are_closed_on_reorder(db_session):
    save_order_row(db_session, row_number=3, substance="A", quantity_order=1)
    save_order_row(db_session, row_number=7, substance="B", quantity_order=1)
    db_session.commit()

    reorder_by_urgency(db_session)
    db_session.commit()

    assert _layout(db_session) == [(1, "A", False), (2, "B", False)]


def test_set_urgent_unknown_row(db_session):
    with pytest.raises(NotFoundError):
        set_urgent(db_session, 999, True)
