"""
Test fixtures - Flask app on in-memory SQLite + seeded families and catalog
"""

from datetime import date

import pytest

from app import create_app
from models import db
from services.notifications import NullNotifier
from services.templates import seed_system_templates
from tests.factories import ScriptedRandom, make_family, make_recipe

# A Monday
WEEK_START = date(2026, 10, 19)


@pytest.fixture()
def app():
    """Fresh schema for each test, system templates seeded"""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        seed_system_templates()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def family(app):
    """Family with an ADMIN, a PARENT and a CHILD, no diet constraints"""
    return make_family()


@pytest.fixture()
def catalog(app):
    """Small system-wide recipe catalog with favorites, novelties and others"""
    return {
        'favorite': make_recipe(
            'Lasagnes', is_favorite=True, category='pasta',
            ingredients=[{'name': 'Tomates', 'quantity': 400, 'unit': 'g'}],
        ),
        'novelty': make_recipe(
            'Curry de lentilles', is_novelty=True, category='vegetarian',
            ingredients=[{'name': 'Lentilles', 'quantity': 250, 'unit': 'g', 'category': 'pantry'}],
        ),
        'other': make_recipe(
            'Poulet rôti', category='meat',
            ingredients=[{'name': 'Poulet', 'quantity': 1.2, 'unit': 'kg', 'category': 'meat'}],
        ),
    }


@pytest.fixture()
def rng():
    return ScriptedRandom()


@pytest.fixture()
def notifier():
    return NullNotifier()
