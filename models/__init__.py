"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db, atomic

from .family import Family, DietProfile, FamilyMember
from .recipe import Recipe, Ingredient
from .component import FoodComponent, MealComponent
from .schedule import MealScheduleTemplate, SchoolMenu
from .mealplan import WeeklyPlan, Meal, Guest, Attendance, Vote, MealComment
from .shopping import ShoppingList, ShoppingItem, InventoryItem
from .changelog import PlanChangeLog

__all__ = [
    'db',
    'atomic',
    'Family',
    'DietProfile',
    'FamilyMember',
    'Recipe',
    'Ingredient',
    'FoodComponent',
    'MealComponent',
    'MealScheduleTemplate',
    'SchoolMenu',
    'WeeklyPlan',
    'Meal',
    'Guest',
    'Attendance',
    'Vote',
    'MealComment',
    'ShoppingList',
    'ShoppingItem',
    'InventoryItem',
    'PlanChangeLog',
]
