from ptclab.commands import invoke


def create_item(call, name="Agar", stock=10, minimum=2, **fields):
    return call(
        "create_inventory_item",
        name=name,
        category=fields.pop("category", "media_ingredient"),
        unit=fields.pop("unit", "g"),
        current_stock=stock,
        minimum_stock=minimum,
        **fields,
    )


def test_adjust_stock_never_goes_negative(call, state, admin_token):
    item = create_item(call, stock=10)

    result = invoke(state, "adjust_stock", admin_token, id=item["id"], adjustment=-15)
    assert result == {"ok": False, "error": "Stock cannot go below zero", "kind": "constraint_violation"}
    assert call("get_inventory_item", id=item["id"])["current_stock"] == 10

    emptied = call("adjust_stock", id=item["id"], adjustment=-10, reason="used up")
    assert emptied["current_stock"] == 0


def test_adjust_stock_audit_detail(call):
    item = create_item(call, stock=10)
    call("adjust_stock", id=item["id"], adjustment=5, reason="delivery")
    entry = call("get_audit_log", entity_id=item["id"], action="update")["items"][0]
    assert entry["details"] == "Stock adjusted by +5: 10 -> 15 (delivery)"
    assert entry["old_value"] == "10"
    assert entry["new_value"] == "15"


def test_low_stock_alerts_order_by_depletion(call):
    create_item(call, name="Plenty", stock=50, minimum=5)
    create_item(call, name="Low", stock=4, minimum=5)
    create_item(call, name="Empty", stock=0, minimum=5)
    create_item(call, name="Reorder", stock=8, minimum=5, reorder_point=10)

    alerts = call("get_low_stock_alerts")
    assert [alert["name"] for alert in alerts] == ["Empty", "Low", "Reorder"]


def test_inventory_update_and_manager_only_delete(call, state, make_user):
    item = create_item(call, name="Sucrose")
    renamed = call("update_inventory_item", id=item["id"], storage_location="Cabinet 3")
    assert renamed["storage_location"] == "Cabinet 3"
    assert renamed["physical_state"] == "solid"

    tech = make_user("tech")
    denied = invoke(state, "delete_inventory_item", tech, id=item["id"])
    assert denied["kind"] == "permission_denied"

    call("delete_inventory_item", id=item["id"])
    assert call("list_inventory") == []


def test_media_batch_deducts_reagent_stock(call):
    bap = create_item(call, name="BAP stock", category="hormone", unit="mL", stock=3)
    batch = call(
        "create_media_batch",
        name="MS + BAP",
        preparation_date="2024-05-01",
        volume_prepared_ml=1000,
        hormones=[
            {
                "hormone_name": "BAP",
                "hormone_type": "cytokinin",
                "concentration_mg_per_l": 1.0,
                "reagent_batch_id": bap["id"],
                "amount_used": 5,
                "amount_unit": "mL",
            },
            {"hormone_name": "NAA", "hormone_type": "auxin", "concentration_mg_per_l": 0.1},
        ],
    )
    assert batch["batch_id"].startswith("MB-")
    assert batch["batch_id"].endswith("-001")
    assert batch["volume_remaining_ml"] == 1000
    assert [h["hormone_name"] for h in batch["hormones"]] == ["BAP", "NAA"]

    # clamped at zero rather than failing the batch
    assert call("get_inventory_item", id=bap["id"])["current_stock"] == 0
    entry = call("get_audit_log", entity_id=bap["id"], action="update")["items"][0]
    assert entry["details"] == f"Used in media batch {batch['batch_id']} (BAP)"
    assert entry["old_value"] == "3"
    assert entry["new_value"] == "0"

    second = call("create_media_batch", name="MS", preparation_date="2024-05-01")
    assert second["batch_id"].endswith("-002")


def test_media_batch_update_and_delete(call, state, make_user):
    batch = call(
        "create_media_batch",
        name="WPM",
        preparation_date="2024-05-01",
        hormones=[{"hormone_name": "IBA", "concentration_mg_per_l": 0.5}],
    )
    updated = call("update_media_batch", id=batch["id"], needs_review=True, volume_used_ml=200)
    assert updated["needs_review"] is True
    assert updated["volume_used_ml"] == 200

    tech = make_user("tech")
    assert invoke(state, "delete_media_batch", tech, id=batch["id"])["kind"] == "permission_denied"
    call("delete_media_batch", id=batch["id"])
    assert call("list_media") == []


def test_prepared_solution_draws_from_source(call):
    powder = create_item(call, name="Kinetin", category="hormone", unit="mg", stock=100)
    solution = call(
        "create_prepared_solution",
        name="Kinetin 1 mg/mL",
        source_item_id=powder["id"],
        source_amount_used=25,
        concentration=1,
        concentration_unit="mg/mL",
        volume_ml=25,
        preparation_date="2024-05-02",
    )
    assert solution["source_item_name"] == "Kinetin"
    assert solution["volume_remaining_ml"] == 25
    assert call("get_inventory_item", id=powder["id"])["current_stock"] == 75

    used = call("update_prepared_solution", id=solution["id"], volume_remaining_ml=10)
    assert used["volume_remaining_ml"] == 10
    assert [row["id"] for row in call("list_prepared_solutions")] == [solution["id"]]

    call("delete_prepared_solution", id=solution["id"])
    assert call("list_prepared_solutions") == []


def test_prepared_solution_with_unknown_source(state, admin_token):
    result = invoke(
        state, "create_prepared_solution", admin_token,
        name="Mystery", source_item_id="missing", concentration=1,
        concentration_unit="mM", volume_ml=10, preparation_date="2024-05-02",
    )
    assert result["kind"] == "not_found"


def test_stock_set_through_update_is_audited(call):
    item = create_item(call, stock=10)
    call("update_inventory_item", id=item["id"], current_stock=3)
    entry = call("get_audit_log", entity_id=item["id"], action="update")["items"][0]
    assert (entry["old_value"], entry["new_value"]) == ("10", "3")
    assert entry["details"] == "Stock set: 10 -> 3"

    call("update_inventory_item", id=item["id"], notes="sealed")
    latest = call("get_audit_log", entity_id=item["id"], action="update")["items"][0]
    assert latest["details"] == "Inventory item updated"
    assert latest["old_value"] is None
