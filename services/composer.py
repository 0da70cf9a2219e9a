"""
Plan Composer

Turns a schedule template and a compliant catalog into one meal draft per
slot. Drafts are plain tuples; persisting them is the planning service's job.
"""

from collections import namedtuple
from datetime import timedelta

from constants import COMPONENT_MEAL_PROBABILITY, DAYS_OF_WEEK
from utils.errors import InsufficientCatalog, NoFavoritesAvailable
from utils.logger import get_logger
from .selection import (
    initial_state,
    partition_components,
    partition_recipes,
    remember_protein,
    select_components,
    select_recipe,
)

logger = get_logger(__name__)

# components is a list of (FoodComponent, role) pairs
MealDraft = namedtuple('MealDraft', [
    'day_of_week', 'meal_type', 'recipe', 'components', 'is_school_meal', 'portions', 'source',
])

EXPRESS_MEAL_TYPES = ('LUNCH', 'DINNER')


def school_meal_draft(day, meal_type, portions):
    return MealDraft(day, meal_type, None, [], True, portions, 'school')


def school_lunches_by_date(school_menus):
    """Index the week's school lunches by date."""
    return {menu.date: menu for menu in school_menus if menu.meal_type == 'LUNCH'}


def compose_week(schedule, week_start, recipes, components, school_menus, profile, portions, rng):
    """
    Fill every slot of a schedule.

    Lunches covered by a school menu become school meals. Other slots are,
    with a fixed 30% chance and a full component catalog, built from
    components; otherwise they get a recipe from select_recipe(). A dinner
    avoids the category of that day's school lunch.

    Args:
        schedule: ordered list of {dayOfWeek, mealTypes[]} entries
        week_start: date of the Monday of the planned week
        recipes: diet-compliant recipes
        components: diet-compliant food components
        school_menus: SchoolMenu rows of the week
        profile: the family DietProfile
        portions: portions given to every meal
        rng: random source

    Returns:
        List of MealDraft in schedule order
    """
    buckets = partition_recipes(recipes)
    component_buckets = partition_components(components)
    components_available = all(component_buckets)
    lunches = school_lunches_by_date(school_menus)

    state = initial_state(profile)
    recent_proteins = []
    drafts = []

    for entry in schedule:
        day = entry['dayOfWeek']
        day_date = week_start + timedelta(days=DAYS_OF_WEEK.index(day))
        school_lunch = lunches.get(day_date)

        for meal_type in entry['mealTypes']:
            if meal_type == 'LUNCH' and school_lunch is not None:
                drafts.append(school_meal_draft(day, meal_type, portions))
                continue

            if components_available and rng.random() < COMPONENT_MEAL_PROBABILITY:
                try:
                    picked = select_components(component_buckets, recent_proteins, rng)
                except InsufficientCatalog:
                    logger.warning('Component selection failed for %s %s, using a recipe', day, meal_type)
                else:
                    recent_proteins = remember_protein(recent_proteins, picked[0][0].id)
                    drafts.append(MealDraft(day, meal_type, None, picked, False, portions, 'components'))
                    continue

            avoid_category = None
            if meal_type == 'DINNER' and school_lunch is not None and school_lunch.category:
                avoid_category = school_lunch.category

            recipe, source, state = select_recipe(buckets, state, rng, avoid_category)
            logger.debug('Selected %s for %s %s from %s', recipe.title, day, meal_type, source)
            drafts.append(MealDraft(day, meal_type, recipe, [], False, portions, source))

    return drafts


def compose_express_week(recipes, portions, rng):
    """
    Fast path: lunch and dinner every day from favorites, cycled in order.

    One meal picked at random is then swapped for the first novelty, if
    the catalog has one.

    Raises:
        NoFavoritesAvailable: if no compliant recipe is a favorite
    """
    buckets = partition_recipes(recipes)
    if not buckets.favorites:
        raise NoFavoritesAvailable(
            'No favorite recipes found. Please mark some recipes as favorites first.'
        )

    drafts = []
    favorite_index = 0
    for day in DAYS_OF_WEEK:
        for meal_type in EXPRESS_MEAL_TYPES:
            recipe = buckets.favorites[favorite_index % len(buckets.favorites)]
            drafts.append(MealDraft(day, meal_type, recipe, [], False, portions, 'favorites'))
            favorite_index += 1

    if buckets.novelties:
        index = rng.randrange(len(drafts))
        drafts[index] = drafts[index]._replace(recipe=buckets.novelties[0], source='novelties')

    return drafts
