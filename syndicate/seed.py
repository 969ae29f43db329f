"""Demo catalog and tasks, plus the maintenance CLI.

    flask --app app seed-economy [--reset]
    flask --app app sweep-contracts
    flask --app app daily-interest
"""
import click

from .models import db, Weapon, Armor, House, SpecialItem, Car, Dog, Task

WEAPONS = [
    dict(id=1, name="Knuckle Duster", price=150, type="melee", damage=4, energy_bonus=0),
    dict(id=2, name="Switchblade", price=400, type="melee", damage=8, energy_bonus=0),
    dict(id=5, name="Revolver", price=800, type="pistol", damage=15, energy_bonus=2, rarity="uncommon"),
    dict(id=9, name="Ghost Rifle", price=40, currency="blackcoins", type="sniper", damage=60, energy_bonus=10, rarity="epic"),
]
ARMORS = [
    dict(id=1, name="Leather Jacket", price=300, defense=3, hp_bonus=10),
    dict(id=7, name="Kevlar Vest", price=1200, defense=12, hp_bonus=40, rarity="rare"),
]
HOUSES = [
    dict(id=1, name="Back Alley Room", price=1000, energy_regen=1, defense_bonus=0, hp_bonus=0),
    dict(id=2, name="Safehouse", price=25000, energy_regen=5, defense_bonus=5, hp_bonus=50, rarity="rare"),
]
SPECIALS = [
    dict(id=1, name="Bandage", price=50, effects={"health": 50}),
    dict(id=2, name="Energy Drink", price=120, effects={"energy": "full"}),
    dict(id=3, name="Street Smarts", price=5, currency="blackcoins", effects={"exp": 500}, rarity="rare"),
]
CARS = [dict(id=1, name="Rusty Sedan", price=5000, speed=3)]
DOGS = [dict(id=1, name="Guard Dog", price=2500, power=5)]

TASKS = [
    dict(id=1, title="Climb the ranks", description="Reach level 10", metric="level", goal=10,
         reward_money=5000, reward_exp=0, reward_blackcoins=5, progress_points=10),
    dict(id=2, title="Petty thief", description="Commit 25 crimes", metric="crimes_committed", goal=25,
         reward_money=1000, reward_exp=300, progress_points=5),
    dict(id=3, title="Saver", description="Hold 10000 in the bank", metric="bank_balance", goal=10000,
         reward_money=0, reward_exp=500, reward_blackcoins=2, progress_points=5),
    dict(id=4, title="Shopper", description="Buy 5 items", metric="items_bought", goal=5,
         reward_money=500, progress_points=2),
    dict(id=5, title="Loyal soldier", description="Contribute 5000 to your gang", metric="gang_money_contributed",
         goal=5000, reward_exp=1000, progress_points=5),
]

CATALOG = [
    (Weapon, WEAPONS), (Armor, ARMORS), (House, HOUSES),
    (SpecialItem, SPECIALS), (Car, CARS), (Dog, DOGS),
]


def seed_economy(reset: bool = False) -> dict:
    """Upsert the demo catalog and tasks; returns row counts per table."""
    counts = {}
    for model, rows in CATALOG + [(Task, TASKS)]:
        if reset:
            db.session.query(model).delete()
        for row in rows:
            obj = db.session.get(model, row["id"])
            if obj is None:
                db.session.add(model(**row))
            else:
                for k, v in row.items():
                    setattr(obj, k, v)
        counts[model.__tablename__] = len(rows)
    db.session.commit()
    return counts


def register_cli(app):
    @app.cli.command("seed-economy")
    @click.option("--reset", is_flag=True, help="Delete existing catalog/task rows first.")
    def seed_economy_cmd(reset):
        for table, n in seed_economy(reset).items():
            click.echo(f"{table}: {n}")

    @app.cli.command("sweep-contracts")
    def sweep_contracts_cmd():
        expired = app.extensions["economy"].sweep_expired()
        click.echo(f"expired {len(expired)} contract(s)")

    @app.cli.command("daily-interest")
    def daily_interest_cmd():
        paid = app.extensions["economy"].apply_daily_interest()
        click.echo(f"paid interest on {len(paid)} account(s)")
