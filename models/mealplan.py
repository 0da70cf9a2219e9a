"""
Meal Plan Models

Contains the WeeklyPlan and Meal models plus the per-meal family input:
guests, attendance, votes and comments.
"""

from .base import db, utcnow


class WeeklyPlan(db.Model):
    """One family's plan for one week. Status only ever moves forward."""
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    template_id = db.Column(db.Integer, db.ForeignKey('meal_schedule_template.id', ondelete='SET NULL'), nullable=True)
    week_start_date = db.Column(db.Date, nullable=False)
    week_number = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(15), nullable=False, default='DRAFT')  # DRAFT, IN_VALIDATION, VALIDATED, LOCKED
    cutoff_date = db.Column(db.Date, nullable=True)
    cutoff_time = db.Column(db.String(5), nullable=True)  # HH:MM
    allow_comments_after_cutoff = db.Column(db.Boolean, default=True, nullable=False)
    validated_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    family = db.relationship('Family')
    template = db.relationship('MealScheduleTemplate')
    meals = db.relationship(
        'Meal', backref='weekly_plan', lazy=True,
        cascade='all, delete-orphan', order_by='Meal.id'
    )

    def __repr__(self):
        return f"<WeeklyPlan {self.id}: family={self.family_id} week={self.week_start_date} {self.status}>"


class Meal(db.Model):
    """
    One (day, meal type) slot of a plan.

    At most one of recipe, components, school meal or skipped is active.
    Skipping keeps the row so the slot can be restored.
    """
    __table_args__ = (
        db.UniqueConstraint('weekly_plan_id', 'day_of_week', 'meal_type', name='uq_meal_slot'),
    )

    id = db.Column(db.Integer, primary_key=True)
    weekly_plan_id = db.Column(db.Integer, db.ForeignKey('weekly_plan.id', ondelete='CASCADE'), nullable=False, index=True)
    day_of_week = db.Column(db.String(10), nullable=False)
    meal_type = db.Column(db.String(10), nullable=False)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='SET NULL'), nullable=True, index=True)
    portions = db.Column(db.Integer, nullable=False, default=4)
    locked = db.Column(db.Boolean, default=False, nullable=False)  # independent of plan status
    is_school_meal = db.Column(db.Boolean, default=False, nullable=False)
    is_external = db.Column(db.Boolean, default=False, nullable=False)  # eaten out, nothing to buy
    is_skipped = db.Column(db.Boolean, default=False, nullable=False)
    skip_reason = db.Column(db.String(200), nullable=True)

    recipe = db.relationship('Recipe')
    meal_components = db.relationship(
        'MealComponent', backref='meal', lazy=True,
        cascade='all, delete-orphan', order_by='MealComponent.order'
    )
    guests = db.relationship('Guest', backref='meal', lazy=True, cascade='all, delete-orphan')
    attendances = db.relationship('Attendance', backref='meal', lazy=True, cascade='all, delete-orphan')
    votes = db.relationship('Vote', backref='meal', lazy=True, cascade='all, delete-orphan')
    comments = db.relationship('MealComment', backref='meal', lazy=True, cascade='all, delete-orphan')

    @property
    def is_empty(self):
        return (self.recipe_id is None and not self.meal_components
                and not self.is_school_meal and not self.is_skipped)

    @property
    def label(self):
        return f"{self.day_of_week} {self.meal_type}"

    def __repr__(self):
        return f"<Meal {self.id}: {self.label}>"


class Guest(db.Model):
    """Extra people at a meal. Children count for 0.7 of an adult."""
    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    adults = db.Column(db.Integer, default=0, nullable=False)
    children = db.Column(db.Integer, default=0, nullable=False)
    note = db.Column(db.String(200), nullable=True)


class Attendance(db.Model):
    __table_args__ = (db.UniqueConstraint('meal_id', 'member_id', name='uq_attendance_member'),)

    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('family_member.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.String(10), nullable=False, default='PRESENT')


class Vote(db.Model):
    __table_args__ = (db.UniqueConstraint('meal_id', 'member_id', name='uq_vote_member'),)

    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('family_member.id', ondelete='CASCADE'), nullable=False)
    type = db.Column(db.String(10), nullable=False)  # LIKE, DISLIKE, LOVE
    comment = db.Column(db.String(500), nullable=True)


class MealComment(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey('meal.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('family_member.id', ondelete='CASCADE'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    is_edited = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    member = db.relationship('FamilyMember')
