def _seed_catalog(client):
    r = client.post(
        "/v1/catalog/batch",
        json={
            "records": [
                {"substance": "AMOX", "name": "Amoxicillin", "units_per_box_a": 10, "units_per_box_b": 4, "price": 5},
                {"substance": "PARA", "name": "Paracetamol", "units_per_box_a": 20, "units_per_box_b": 8, "price": 2},
            ]
        },
    )
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client):
    r = client.get("/v1/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_catalog_single_save_uses_duplicate_policy(client):
    r = client.post("/v1/catalog", json={"substance": "AMOX", "name": "Amoxicillin", "price": 5})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["action"] == "created"
    record_id = body["id"]

    r = client.post("/v1/catalog", json={"substance": "AMOX", "name": "Other"})
    assert r.json() == {"id": record_id, "action": "duplicate", "duplicate": True, "reason": "duplicate_in_store"}

    r = client.post("/v1/catalog", json={"substance": "AMOX", "name": "Edited", "current_id": record_id})
    assert r.json()["action"] == "updated"

    r = client.get("/v1/catalog/by-substance/AMOX")
    assert r.status_code == 200
    assert r.json()["name"] == "Edited"

    r = client.post("/v1/catalog", json={"substance": "NEG", "price": -1})
    assert r.status_code == 422


def test_catalog_batch_summary(client):
    body = _seed_catalog(client)
    assert body["summary"]["created"] == 2

    r = client.post("/v1/catalog/batch", json={"records": [{"substance": "AMOX"}, {"substance": "IBU"}, {"substance": "IBU"}]})
    summary = r.json()["summary"]
    assert (summary["created"], summary["duplicates"]) == (1, 2)
    assert sorted(summary["duplicate_substances"]) == ["AMOX", "IBU"]

    r = client.get("/v1/catalog")
    assert len(r.json()) == 3


def test_catalog_image_upload_and_delete(client, blobs):
    record_id = client.post("/v1/catalog", json={"substance": "AMOX"}).json()["id"]

    r = client.put(f"/v1/catalog/{record_id}/image", content=b"\x89PNG fake", headers={"content-type": "image/png"})
    assert r.status_code == 200, r.text
    blob_id = r.json()["image_blob_id"]
    assert blob_id.endswith(".png")
    assert r.json()["image_url"] == f"/blobs/{blob_id}"
    assert blobs.get_blob_url(blob_id) is not None

    r = client.put(f"/v1/catalog/{record_id}/image", content=b"", headers={"content-type": "image/png"})
    assert r.status_code == 422

    r = client.delete(f"/v1/catalog/{record_id}")
    assert r.status_code == 200
    assert blobs.get_blob_url(blob_id) is None

    r = client.delete(f"/v1/catalog/{record_id}")
    assert r.status_code == 404


def test_full_pipeline_over_http(client):
    _seed_catalog(client)

    assert client.get("/v1/orders/next-row-number").json() == {"row_number": 1}
    a = client.post("/v1/orders", json={"row_number": 1, "substance": "AMOX", "quantity_order": 3, "real_order": 2}).json()["id"]
    b = client.post("/v1/orders", json={"row_number": 2, "substance": "PARA", "quantity_order": 1, "real_order": 1}).json()["id"]

    r = client.post(f"/v1/orders/{b}/urgent", json={"urgent": True})
    assert [row["id"] for row in r.json()] == [b, a]
    orders = client.get("/v1/orders").json()
    assert [(o["row_number"], o["substance"]) for o in orders] == [(1, "PARA"), (2, "AMOX")]
    assert orders[1]["unit_quantity_order"] == 30

    assert client.post("/v1/fulfillment/send").json() == {"sent": 2}
    assert client.post("/v1/fulfillment/send").json() == {"sent": 0}

    rows = client.get("/v1/fulfillment").json()
    amox = next(f for f in rows if f["substance"] == "AMOX")
    r = client.patch(f"/v1/fulfillment/{amox['id']}", json={"final_order": 100, "bonus": 10})
    assert r.status_code == 200, r.text
    assert (r.json()["final_package_amount"], r.json()["total_price"]) == (110, 500.0)

    assert client.post("/v1/fulfillment/confirm").json() == {"confirmed": 2}
    assert client.post("/v1/fulfillment/confirm").json() == {"confirmed": 0}

    r = client.get(f"/v1/fulfillment/{amox['id']}")
    assert r.status_code == 200
    assert r.json()["final_package_amount"] == 110
    assert client.get("/v1/fulfillment/9999").status_code == 404

    processes = client.get("/v1/processes").json()
    assert len(processes) == 2
    r = client.get(f"/v1/processes/{processes[0]['id']}")
    assert r.json()["substance"] == processes[0]["substance"]
    assert client.get("/v1/processes/9999").status_code == 404
    r = client.patch(f"/v1/processes/{processes[0]['id']}", json={"box_number": "B-1", "status": "preparing"})
    assert r.json()["status"] == "preparing"

    costs = client.get("/v1/costs").json()
    assert [c["substance"] for c in costs] == ["PARA", "AMOX"]
    assert client.get("/v1/costs/total").json() == {"total": 500.0, "count": 2}

    r = client.post("/v1/archives/move", headers={"X-Actor": "bob"})
    assert r.status_code == 200, r.text
    assert r.json()["moved"] == 2

    latest = client.get("/v1/archives/latest").json()
    assert latest["bundle_id"] == r.json()["bundle_id"]
    assert latest["created_by"] == "bob"
    assert latest["total_cost"] == 500.0
    assert len(latest["processes"]) == 2

    assert client.get("/v1/orders").json() == []
    assert len(client.get("/v1/archives").json()) == 1


def test_archive_move_with_empty_pipeline(client):
    r = client.post("/v1/archives/move")
    assert r.status_code == 404
    assert r.json() == {"detail": "No process data to move."}

    assert client.get("/v1/archives/latest").status_code == 404


def test_error_mapping(client):
    assert client.post("/v1/orders/123/urgent", json={"urgent": True}).status_code == 404
    assert client.patch("/v1/processes/1", json={"status": "preparing"}).status_code == 404
    assert client.patch("/v1/processes/1", json={"status": "lost"}).status_code == 422
    assert client.post("/v1/orders", json={"row_number": 0, "substance": "AMOX"}).status_code == 422


def test_management_clear(client):
    _seed_catalog(client)
    client.post("/v1/orders", json={"row_number": 1, "substance": "AMOX"})

    r = client.post("/v1/management/clear")
    assert r.status_code == 200
    cleared = r.json()["cleared"]
    assert (cleared["catalog_records"], cleared["order_rows"]) == (2, 1)

    assert client.get("/v1/catalog").json() == []


def test_management_clear_one_stage(client, blobs):
    _seed_catalog(client)
    client.post("/v1/orders", json={"row_number": 1, "substance": "AMOX", "quantity_order": 2})
    client.post("/v1/fulfillment/send")

    r = client.post("/v1/management/clear/orders", headers={"X-Actor": "carol"})
    assert r.status_code == 200, r.text
    assert r.json() == {
        "stage": "orders",
        "cleared": {"process_rows": 0, "fulfillment_rows": 1, "order_rows": 1},
        "by": "carol",
    }
    assert client.get("/v1/fulfillment").json() == []

    record_id = client.get("/v1/catalog/by-substance/AMOX").json()["id"]
    blob_id = client.put(
        f"/v1/catalog/{record_id}/image", content=b"img", headers={"content-type": "image/png"}
    ).json()["image_blob_id"]

    r = client.post("/v1/management/clear/catalog")
    assert r.json()["cleared"] == {"catalog_records": 2}
    assert blobs.get_blob_url(blob_id) is None

    assert client.post("/v1/management/clear/everything").status_code == 422
