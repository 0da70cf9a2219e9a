"""
Family Models

Contains the Family, DietProfile and FamilyMember models. Families are
managed elsewhere; the planner only reads them.
"""

from .base import db, utcnow


class DietProfile(db.Model):
    """Dietary constraints and planning preferences of one family."""
    id = db.Column(db.Integer, primary_key=True)
    kosher = db.Column(db.Boolean, default=False, nullable=False)
    kosher_type = db.Column(db.String(30), nullable=True)
    halal = db.Column(db.Boolean, default=False, nullable=False)
    halal_type = db.Column(db.String(30), nullable=True)
    vegetarian = db.Column(db.Boolean, default=False, nullable=False)
    vegan = db.Column(db.Boolean, default=False, nullable=False)
    pescatarian = db.Column(db.Boolean, default=False, nullable=False)
    gluten_free = db.Column(db.Boolean, default=False, nullable=False)
    lactose_free = db.Column(db.Boolean, default=False, nullable=False)
    allergies = db.Column(db.JSON, default=list, nullable=False)
    favorite_ratio = db.Column(db.Float, default=0.6, nullable=False)  # 0..1
    max_novelties = db.Column(db.Integer, default=2, nullable=False)


class Family(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    language = db.Column(db.String(5), default='fr', nullable=False)
    diet_profile_id = db.Column(db.Integer, db.ForeignKey('diet_profile.id'), nullable=False, unique=True)
    # Plain column: a foreign key here would form a cycle with meal_schedule_template.family_id
    default_template_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    diet_profile = db.relationship('DietProfile', uselist=False)
    default_template = db.relationship(
        'MealScheduleTemplate',
        primaryjoin='foreign(Family.default_template_id) == MealScheduleTemplate.id',
        uselist=False
    )
    members = db.relationship('FamilyMember', backref='family', lazy=True, cascade='all, delete-orphan')
    inventory = db.relationship('InventoryItem', backref='family', lazy=True, cascade='all, delete-orphan')
    school_menus = db.relationship('SchoolMenu', backref='family', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Family {self.id}: {self.name}>"


class FamilyMember(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('family.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(10), default='MEMBER', nullable=False)  # ADMIN, PARENT, MEMBER, CHILD

    def __repr__(self):
        return f"<FamilyMember {self.id}: {self.name} ({self.role})>"
