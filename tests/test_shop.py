import pytest

from syndicate.models import db, InventoryEntry
from syndicate.seed import seed_economy
from syndicate.services.errors import InsufficientFunds, InvalidAmount, ItemNotFound, ItemNotOwned
from syndicate.services.shop import sell_price

from conftest import add_character, character


def setup_shop(**fields):
    seed_economy()
    return add_character(**fields)


def owned(cid, item_type, item_id):
    return sum(
        r.quantity
        for r in db.session.query(InventoryEntry).filter_by(character_id=cid, item_type=item_type, item_id=item_id)
    )


def test_purchase_debits_and_grants(engine):
    cid = setup_shop(money=1000)
    result = engine.purchase(cid, "weapon", 5, 1)
    assert result["remaining_balance"] == 200
    assert result["total_price"] == 800
    assert result["owned"] == 1
    assert character(cid).money == 200
    assert owned(cid, "weapon", 5) == 1


def test_purchase_insufficient_funds_leaves_nothing(engine, events):
    cid = setup_shop(money=1000)
    with pytest.raises(InsufficientFunds):
        engine.purchase(cid, "weapon", 5, 2)
    assert character(cid).money == 1000
    assert owned(cid, "weapon", 5) == 0
    assert events.events == []


def test_purchase_unknown_item(engine):
    cid = setup_shop(money=1000)
    with pytest.raises(ItemNotFound):
        engine.purchase(cid, "weapon", 999)
    with pytest.raises(ItemNotFound):
        engine.purchase(cid, "spaceship", 1)
    assert character(cid).money == 1000


def test_purchase_bad_quantity(engine):
    cid = setup_shop(money=1000)
    with pytest.raises(InvalidAmount):
        engine.purchase(cid, "weapon", 1, 0)


def test_purchase_in_blackcoins(engine):
    cid = setup_shop(money=1000, blackcoins=50)
    result = engine.purchase(cid, "weapon", 9)
    assert result["currency"] == "blackcoins"
    char = character(cid)
    assert (char.money, char.blackcoins) == (1000, 10)


def test_sell_unowned_item(engine):
    cid = setup_shop(money=1000)
    with pytest.raises(ItemNotOwned):
        engine.sell(cid, "armor", 7)
    assert character(cid).money == 1000


def test_sell_pays_policy_fraction(engine):
    cid = setup_shop(money=1000)
    engine.purchase(cid, "weapon", 5)
    result = engine.sell(cid, "weapon", 5)
    assert result["sell_price"] == 400
    assert result["owned"] == 0
    assert character(cid).money == 600


def test_sell_equipped_item_unequips_it(engine):
    cid = setup_shop(money=2000)
    engine.purchase(cid, "house", 1)
    engine.equip(cid, "house", 1, "house")
    result = engine.sell(cid, "house", 1)
    assert result["sell_price"] == 700
    char = character(cid)
    assert char.equipped_house_id is None
    assert char.money == 1700
    assert owned(cid, "house", 1) == 0


def test_sell_price_rounds_half_up():
    assert sell_price(50, "special") == 13
    assert sell_price(1000, "house") == 700
    assert sell_price(3, "weapon") == 2
    with pytest.raises(ItemNotFound):
        sell_price(10, "spaceship")


def test_use_item_heals_capped(engine):
    cid = setup_shop(money=1000, hp=80)
    engine.purchase(cid, "special", 1)
    result = engine.use_item(cid, 1)
    assert result["applied"] == {"health": 20}
    assert character(cid).hp == character(cid).max_hp
    assert owned(cid, "special", 1) == 0


def test_use_item_energy_full_and_exp(engine):
    cid = setup_shop(money=1000, blackcoins=5, energy=3)
    engine.purchase(cid, "special", 2)
    engine.use_item(cid, 2)
    char = character(cid)
    assert char.energy == char.max_energy

    engine.purchase(cid, "special", 3)
    result = engine.use_item(cid, 3)
    assert result["applied"]["level"]["new_level"] > 1


def test_use_item_not_owned(engine):
    cid = setup_shop()
    with pytest.raises(ItemNotOwned):
        engine.use_item(cid, 1)
