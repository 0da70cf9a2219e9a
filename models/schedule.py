"""
Schedule Models

Contains the MealScheduleTemplate (which slots a week has) and SchoolMenu
(lunches eaten at school, which the planner leaves empty).
"""

from .base import db


class MealScheduleTemplate(db.Model):
    """Ordered list of {dayOfWeek, mealTypes[]} entries. System templates are read-only."""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(300), nullable=True)
    is_system = db.Column(db.Boolean, default=False, nullable=False)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=True, index=True)
    schedule = db.Column(db.JSON, nullable=False)

    @property
    def slot_count(self):
        return sum(len(entry['mealTypes']) for entry in self.schedule)

    def __repr__(self):
        return f"<MealScheduleTemplate {self.id}: {self.name}>"


class SchoolMenu(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    meal_type = db.Column(db.String(10), nullable=False, default='LUNCH')
    title = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50), nullable=True)  # dinner avoids repeating it
