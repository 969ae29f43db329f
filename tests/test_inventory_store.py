import pytest

from syndicate.models import db, InventoryEntry
from syndicate.services.errors import ItemNotOwned, SlotInvalid

from conftest import add_character, character


def grant(engine, cid, item_type, item_id, qty=1):
    return engine.execute(cid, lambda uow: uow.inventory.grant(cid, item_type, item_id, qty))


def rows(cid):
    return (
        db.session.query(InventoryEntry)
        .filter_by(character_id=cid)
        .order_by(InventoryEntry.id)
        .all()
    )


def owned(engine, cid, item_type, item_id):
    return engine.execute(cid, lambda uow: uow.inventory.owned(cid, item_type, item_id))


def test_grant_stacks(engine):
    cid = add_character()
    assert grant(engine, cid, "weapon", 1, 2) == 2
    assert grant(engine, cid, "weapon", 1, 3) == 5
    assert [(r.item_type, r.item_id, r.quantity, r.slot) for r in rows(cid)] == [("weapon", 1, 5, None)]


def test_consume_deletes_at_zero(engine):
    cid = add_character()
    grant(engine, cid, "special", 1, 2)
    assert engine.execute(cid, lambda uow: uow.inventory.consume(cid, "special", 1, 2)) == 0
    assert rows(cid) == []


def test_consume_more_than_owned(engine):
    cid = add_character()
    grant(engine, cid, "special", 1, 1)
    with pytest.raises(ItemNotOwned) as exc:
        engine.execute(cid, lambda uow: uow.inventory.consume(cid, "special", 1, 2))
    assert exc.value.owned == 1
    assert owned(engine, cid, "special", 1) == 1


def test_equip_splits_stack_and_keeps_quantity(engine, events):
    cid = add_character()
    grant(engine, cid, "weapon", 1, 2)
    engine.equip(cid, "weapon", 1, "weapon1")

    data = [(r.quantity, r.equipped, r.slot) for r in rows(cid)]
    assert sorted(data, key=str) == sorted([(1, False, None), (1, True, "weapon1")], key=str)
    assert owned(engine, cid, "weapon", 1) == 2
    assert character(cid).equipped_weapon1_id == 1
    assert events.of_kind("inventory")[-1].payload["slot"] == "weapon1"


def test_equip_same_item_in_both_weapon_slots(engine):
    cid = add_character()
    grant(engine, cid, "weapon", 1, 2)
    engine.equip(cid, "weapon", 1, "weapon1")
    loadout = engine.equip(cid, "weapon", 1, "weapon2")
    assert loadout["weapon1"]["item_id"] == 1
    assert loadout["weapon2"]["item_id"] == 1
    assert {r.slot for r in rows(cid)} == {"weapon1", "weapon2"}
    assert owned(engine, cid, "weapon", 1) == 2


def test_equip_replaces_previous_item(engine):
    cid = add_character()
    grant(engine, cid, "weapon", 1)
    grant(engine, cid, "weapon", 2)
    engine.equip(cid, "weapon", 1, "weapon1")
    engine.equip(cid, "weapon", 2, "weapon1")

    char = character(cid)
    assert char.equipped_weapon1_id == 2
    by_item = {r.item_id: r for r in rows(cid)}
    assert by_item[1].slot is None and not by_item[1].equipped
    assert by_item[2].slot == "weapon1"
    assert owned(engine, cid, "weapon", 1) == 1


def test_equip_moves_last_unit_between_slots(engine):
    cid = add_character()
    grant(engine, cid, "weapon", 1)
    engine.equip(cid, "weapon", 1, "weapon1")
    engine.equip(cid, "weapon", 1, "weapon2")
    char = character(cid)
    assert char.equipped_weapon1_id is None
    assert char.equipped_weapon2_id == 1
    assert [r.slot for r in rows(cid)] == ["weapon2"]


def test_equip_is_idempotent_for_same_slot(engine):
    cid = add_character()
    grant(engine, cid, "armor", 1, 3)
    engine.equip(cid, "armor", 1, "armor")
    engine.equip(cid, "armor", 1, "armor")
    assert len(rows(cid)) == 2
    assert owned(engine, cid, "armor", 1) == 3


def test_equip_wrong_slot(engine):
    cid = add_character()
    grant(engine, cid, "armor", 1)
    with pytest.raises(SlotInvalid):
        engine.equip(cid, "armor", 1, "weapon1")
    with pytest.raises(SlotInvalid):
        engine.equip(cid, "armor", 1, "hat")


def test_equip_not_owned(engine):
    cid = add_character()
    with pytest.raises(ItemNotOwned):
        engine.equip(cid, "house", 1, "house")


def test_unequip_merges_back(engine):
    cid = add_character()
    grant(engine, cid, "weapon", 1, 2)
    engine.equip(cid, "weapon", 1, "weapon1")
    result = engine.unequip(cid, "weapon1")
    assert result["released"] == {"item_type": "weapon", "item_id": 1}
    assert result["equipped"]["weapon1"] is None
    assert [(r.quantity, r.slot) for r in rows(cid)] == [(2, None)]
    assert character(cid).equipped_weapon1_id is None


def test_unequip_empty_slot_is_noop(engine, events):
    cid = add_character()
    assert engine.unequip(cid, "house")["released"] is None
    assert events.of_kind("inventory") == []


def test_consume_equipped_unit_clears_slot(engine):
    cid = add_character()
    grant(engine, cid, "house", 1)
    engine.equip(cid, "house", 1, "house")
    engine.execute(cid, lambda uow: uow.inventory.consume(cid, "house", 1, 1))
    assert rows(cid) == []
    assert character(cid).equipped_house_id is None
