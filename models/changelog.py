"""
Change Log Model

Append-only audit trail of plan mutations, described in three languages.
"""

from .base import db, utcnow


class PlanChangeLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    weekly_plan_id = db.Column(db.Integer, db.ForeignKey('weekly_plan.id', ondelete='CASCADE'), nullable=False, index=True)
    # No foreign key on meal_id: the entry must outlive the meal it describes
    meal_id = db.Column(db.Integer, nullable=True, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('family_member.id', ondelete='SET NULL'), nullable=True)
    change_type = db.Column(db.String(30), nullable=False)
    description = db.Column(db.Text, nullable=False)  # fr
    description_en = db.Column(db.Text, nullable=True)
    description_nl = db.Column(db.Text, nullable=True)
    old_value = db.Column(db.JSON, nullable=True)
    new_value = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
