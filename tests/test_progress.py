import pytest

from syndicate.config import LEVELS
from syndicate.models import db, Task, UserTaskProgress
from syndicate.seed import seed_economy
from syndicate.services.errors import AlreadyClaimed, NotCompleted, TaskNotFound
from syndicate.services.progress import metric_mode

from conftest import add_character, character

LEVEL_TASK = 1      # reach level 10
CRIMES_TASK = 2     # commit 25 crimes
SHOPPER_TASK = 4    # buy 5 items


def progress_row(cid, task_id):
    return db.session.query(UserTaskProgress).filter_by(character_id=cid, task_id=task_id).first()


def test_metric_modes():
    assert metric_mode("level") == "absolute"
    assert metric_mode("crimes_committed") == "incremental"
    with pytest.raises(ValueError):
        metric_mode("steps_walked")


def test_absolute_progress_never_decreases(engine):
    seed_economy()
    cid = add_character()
    engine.update_progress(cid, "level", 5)
    engine.update_progress(cid, "level", 3)
    assert progress_row(cid, LEVEL_TASK).progress == 5


def test_incremental_progress_adds_and_clamps(engine, events):
    seed_economy()
    cid = add_character()
    engine.update_progress(cid, "crimes_committed", 10)
    engine.update_progress(cid, "crimes_committed", 10)
    assert progress_row(cid, CRIMES_TASK).progress == 20
    changed = engine.update_progress(cid, "crimes_committed", 10)
    row = progress_row(cid, CRIMES_TASK)
    assert row.progress == 25
    assert row.is_completed
    assert changed[0]["newly_completed"]
    assert events.of_kind("task")


def test_non_positive_increment_is_ignored(engine):
    seed_economy()
    cid = add_character()
    assert engine.update_progress(cid, "crimes_committed", 0) == []
    assert progress_row(cid, CRIMES_TASK) is None


def test_metric_without_tasks_is_a_noop(engine):
    seed_economy()
    cid = add_character()
    assert engine.update_progress(cid, "fights_won", 3) == []


def test_level_jump_clamps_and_claims_once(engine):
    seed_economy()
    cid = add_character(level=9)
    needed = LEVELS.exp_needed(9) + LEVELS.exp_needed(10)
    engine.execute(cid, lambda uow: uow.ledger.add_experience(cid, needed))
    assert character(cid).level == 11

    row = progress_row(cid, LEVEL_TASK)
    assert row.progress == 10
    assert row.is_completed
    assert engine.unclaimed_count(cid) == 1

    money_before = character(cid).money
    result = engine.claim_task_reward(cid, LEVEL_TASK)
    assert result["rewards"]["money"] == 5000
    char = character(cid)
    assert char.money == money_before + 5000
    assert char.blackcoins == 5
    assert char.progress_points == 10
    assert engine.unclaimed_count(cid) == 0

    with pytest.raises(AlreadyClaimed):
        engine.claim_task_reward(cid, LEVEL_TASK)
    assert character(cid).money == money_before + 5000


def test_completion_is_one_way(engine):
    seed_economy()
    cid = add_character()
    engine.update_progress(cid, "level", 10)
    engine.update_progress(cid, "level", 2)
    row = progress_row(cid, LEVEL_TASK)
    assert row.is_completed and row.progress == 10


def test_claim_incomplete_task(engine):
    seed_economy()
    cid = add_character()
    with pytest.raises(NotCompleted):
        engine.claim_task_reward(cid, CRIMES_TASK)
    engine.update_progress(cid, "crimes_committed", 1)
    with pytest.raises(NotCompleted):
        engine.claim_task_reward(cid, CRIMES_TASK)


def test_claim_unknown_task(engine):
    cid = add_character()
    with pytest.raises(TaskNotFound):
        engine.claim_task_reward(cid, 999)


def test_claim_with_exp_reward_levels_up(engine):
    seed_economy()
    cid = add_character()
    engine.update_progress(cid, "crimes_committed", 25)
    engine.claim_task_reward(cid, CRIMES_TASK)
    char = character(cid)
    assert char.level > 1
    assert progress_row(cid, CRIMES_TASK).reward_collected


def test_purchases_feed_items_bought(engine):
    seed_economy()
    cid = add_character(money=1000)
    engine.purchase(cid, "weapon", 1, 3)
    engine.purchase(cid, "special", 1, 2)
    tasks = {t["task_id"]: t for t in engine.list_tasks(cid)}
    assert tasks[SHOPPER_TASK]["progress"] == 5
    assert tasks[SHOPPER_TASK]["is_completed"]


def test_deposits_feed_bank_balance(engine):
    seed_economy()
    cid = add_character(money=20000)
    engine.deposit(cid, 4000)
    engine.deposit(cid, 7000)
    assert progress_row(cid, 3).progress == 10000
    assert progress_row(cid, 3).is_completed


def test_inactive_tasks_are_ignored(engine):
    seed_economy()
    db.session.get(Task, CRIMES_TASK).is_active = False
    db.session.commit()
    cid = add_character()
    assert engine.update_progress(cid, "crimes_committed", 30) == []
    assert CRIMES_TASK not in {t["task_id"] for t in engine.list_tasks(cid)}


def test_progress_feed_failure_does_not_break_caller(engine, monkeypatch):
    seed_economy()
    cid = add_character(money=1000)

    def broken(*args, **kwargs):
        raise RuntimeError("progress store down")

    monkeypatch.setattr(engine.progress, "update_progress", broken)
    result = engine.purchase(cid, "weapon", 1)
    assert result["remaining_balance"] == 850
