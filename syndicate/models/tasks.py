from sqlalchemy import CheckConstraint, UniqueConstraint

from .base import db, Model, utcnow


class Task(Model):
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text)
    metric = db.Column(db.String(64), nullable=False, index=True)  # e.g. 'level', 'crimes_committed'
    goal = db.Column(db.Integer, nullable=False)
    reward_money = db.Column(db.Integer, nullable=False, default=0)
    reward_exp = db.Column(db.Integer, nullable=False, default=0)
    reward_blackcoins = db.Column(db.Integer, nullable=False, default=0)
    progress_points = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    __table_args__ = (CheckConstraint("goal > 0", name="ck_tasks_goal_pos"),)


class UserTaskProgress(Model):
    __tablename__ = "user_task_progress"

    id = db.Column(db.Integer, primary_key=True)
    character_id = db.Column(db.String(64), db.ForeignKey("character.character_id"), nullable=False, index=True)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id"), nullable=False)
    progress = db.Column(db.Integer, nullable=False, default=0)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    reward_collected = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    task = db.relationship("Task")

    __table_args__ = (
        UniqueConstraint("character_id", "task_id", name="uq_task_progress_character_task"),
    )
