"""Task progress and the one-shot reward claim.

Metrics come in two flavours, fixed per metric: *absolute* metrics report the
current value of something (``money``, ``level``) and keep the maximum ever
seen; *incremental* metrics report events (``crimes_committed``) and add up.
Progress is clamped at the task goal and completion never reverts.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy import select

from ..config import BLACKCOINS, MONEY
from ..models import Task, UserTaskProgress
from .errors import AlreadyClaimed, NotCompleted, TaskNotFound

logger = logging.getLogger(__name__)

ABSOLUTE = "absolute"
INCREMENTAL = "incremental"

METRIC_MODES = {
    "level": ABSOLUTE,
    "money": ABSOLUTE,
    "blackcoins": ABSOLUTE,
    "bank_balance": ABSOLUTE,
    "fame": ABSOLUTE,
    "days_in_game": ABSOLUTE,
    "crimes_committed": INCREMENTAL,
    "fights_won": INCREMENTAL,
    "fights_lost": INCREMENTAL,
    "total_fights": INCREMENTAL,
    "kill_count": INCREMENTAL,
    "jobs_completed": INCREMENTAL,
    "ministry_missions_completed": INCREMENTAL,
    "money_deposited": INCREMENTAL,
    "money_withdrawn": INCREMENTAL,
    "items_bought": INCREMENTAL,
    "items_sold": INCREMENTAL,
    "blackmarket_items_bought": INCREMENTAL,
    "blackmarket_items_sold": INCREMENTAL,
    "gang_money_contributed": INCREMENTAL,
}


def metric_mode(metric: str) -> str:
    try:
        return METRIC_MODES[metric]
    except KeyError:
        raise ValueError(f"unknown progress metric {metric!r}") from None


def _task_dict(task: Task, row: UserTaskProgress | None) -> Dict[str, Any]:
    return {
        "task_id": task.id,
        "title": task.title,
        "description": task.description,
        "metric": task.metric,
        "goal": task.goal,
        "progress": row.progress if row else 0,
        "is_completed": bool(row and row.is_completed),
        "reward_collected": bool(row and row.reward_collected),
        "rewards": reward_bundle(task),
    }


def reward_bundle(task: Task) -> Dict[str, int]:
    return {
        "money": task.reward_money or 0,
        "exp": task.reward_exp or 0,
        "blackcoins": task.reward_blackcoins or 0,
        "progress_points": task.progress_points or 0,
    }


class ProgressTracker:
    def __init__(self, coordinator):
        self.coordinator = coordinator

    @property
    def session(self):
        from ..db import db
        return db.session

    def _active_tasks(self, metric: str) -> List[Task]:
        stmt = select(Task).where(Task.metric == metric, Task.is_active.is_(True)).order_by(Task.id)
        return list(self.session.scalars(stmt))

    def _row(self, uow, character_id: str, task_id: int) -> UserTaskProgress | None:
        stmt = (
            select(UserTaskProgress)
            .where(UserTaskProgress.character_id == character_id, UserTaskProgress.task_id == task_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return uow.session.scalars(stmt).first()

    def update_progress(self, character_id: str, metric: str, value: int) -> List[Dict[str, Any]]:
        """Advance every active task tracking ``metric``; returns the tasks that changed."""
        mode = metric_mode(metric)
        value = int(value)
        if mode == INCREMENTAL and value <= 0:
            return []
        task_ids = [t.id for t in self._active_tasks(metric)]
        if not task_ids:
            return []

        def apply(uow):
            changed = []
            for task_id in task_ids:
                task = uow.session.get(Task, task_id)
                row = self._row(uow, character_id, task_id)
                if row is None:
                    row = UserTaskProgress(character_id=character_id, task_id=task_id, progress=0)
                    uow.session.add(row)
                current = int(row.progress or 0)
                if mode == ABSOLUTE:
                    new = max(current, value)
                else:
                    new = current + value
                new = min(new, task.goal)
                if new == current and row.id is not None:
                    continue
                row.progress = new
                newly_completed = False
                if not row.is_completed and new >= task.goal:
                    row.is_completed = True
                    newly_completed = True
                uow.session.flush()
                snapshot = _task_dict(task, row)
                snapshot["newly_completed"] = newly_completed
                changed.append(snapshot)
                if newly_completed:
                    logger.info("task_completed character_id=%s task_id=%s", character_id, task_id)
            if changed:
                uow.emit(character_id, "task", {"tasks": changed})
            return changed

        return self.coordinator.execute(character_id, apply)

    def feed(self, entries: List[Tuple[str, str, int]]) -> None:
        """Post-commit feed: coalesce entries, then update each (character, metric)."""
        merged: Dict[Tuple[str, str], int] = {}
        for character_id, metric, value in entries:
            key = (character_id, metric)
            if metric_mode(metric) == ABSOLUTE:
                merged[key] = max(merged.get(key, value), value)
            else:
                merged[key] = merged.get(key, 0) + value
        for (character_id, metric), value in merged.items():
            try:
                self.update_progress(character_id, metric, value)
            except Exception:
                logger.exception("progress_update_failed character_id=%s metric=%s", character_id, metric)

    def claim_reward(self, character_id: str, task_id: int) -> Dict[str, Any]:
        def claim(uow):
            task = uow.session.get(Task, task_id)
            if task is None:
                raise TaskNotFound(task_id)
            row = self._row(uow, character_id, task_id)
            if row is not None and row.reward_collected:
                raise AlreadyClaimed(task_id)
            if row is None or not row.is_completed:
                raise NotCompleted(task_id)

            bundle = reward_bundle(task)
            if bundle["money"] > 0:
                uow.ledger.credit(character_id, MONEY, bundle["money"])
            if bundle["blackcoins"] > 0:
                uow.ledger.credit(character_id, BLACKCOINS, bundle["blackcoins"])
            if bundle["exp"] > 0:
                uow.ledger.add_experience(character_id, bundle["exp"])
            if bundle["progress_points"] > 0:
                char = uow.character(character_id)
                char.progress_points = int(char.progress_points or 0) + bundle["progress_points"]
            row.reward_collected = True
            uow.emit(character_id, "task", {"claimed": task_id, "rewards": bundle})
            logger.info("task_reward_claimed character_id=%s task_id=%s rewards=%s", character_id, task_id, bundle)
            return {"task_id": task_id, "rewards": bundle}

        return self.coordinator.execute(character_id, claim)

    def list_tasks(self, character_id: str) -> List[Dict[str, Any]]:
        tasks = list(self.session.scalars(select(Task).where(Task.is_active.is_(True)).order_by(Task.id)))
        rows = {
            r.task_id: r
            for r in self.session.scalars(
                select(UserTaskProgress).where(UserTaskProgress.character_id == character_id)
            )
        }
        return [_task_dict(t, rows.get(t.id)) for t in tasks]

    def unclaimed_count(self, character_id: str) -> int:
        return sum(1 for t in self.list_tasks(character_id) if t["is_completed"] and not t["reward_collected"])
