"""
Selection Service

Pure selection primitives used by the plan composer. Nothing here touches
the database: state goes in, the pick and the updated state come out.

Randomness always comes from an injected source exposing random() and
randrange(n), so tests can force every branch.
"""

import random
from collections import namedtuple

from constants import NOVELTY_CAP, RECENT_PROTEIN_HISTORY, SINGLE_VEGETABLE_PROBABILITY
from utils.errors import InsufficientCatalog, NoCompliantCatalog

RecipeBuckets = namedtuple('RecipeBuckets', ['favorites', 'novelties', 'others'])
ComponentBuckets = namedtuple('ComponentBuckets', ['proteins', 'vegetables', 'carbs'])

# Running cursors threaded through one week of selection
SelectionState = namedtuple('SelectionState', [
    'favorite_index', 'novelty_index', 'other_index',
    'novelty_count', 'novelty_cap', 'favorite_ratio',
])


def make_random(seed=None):
    """Build the random source for one generation request."""
    return random.Random(seed)


def initial_state(profile):
    """Fresh cursors for a week, capped at NOVELTY_CAP novelties."""
    max_novelties = profile.max_novelties if profile is not None else NOVELTY_CAP
    favorite_ratio = profile.favorite_ratio if profile is not None else 0.6
    return SelectionState(
        favorite_index=0,
        novelty_index=0,
        other_index=0,
        novelty_count=0,
        novelty_cap=min(max_novelties, NOVELTY_CAP),
        favorite_ratio=favorite_ratio,
    )


def partition_recipes(recipes):
    """Split a compliant catalog into favorites, novelties and everything else."""
    return RecipeBuckets(
        favorites=[r for r in recipes if r.is_favorite],
        novelties=[r for r in recipes if r.is_novelty],
        others=[r for r in recipes if not r.is_favorite and not r.is_novelty],
    )


def partition_components(components):
    return ComponentBuckets(
        proteins=[c for c in components if c.category == 'PROTEIN'],
        vegetables=[c for c in components if c.category == 'VEGETABLE'],
        carbs=[c for c in components if c.category == 'CARB'],
    )


def _avoiding(items, avoid_category):
    # Drop the avoided category unless that would empty the bucket
    if not avoid_category:
        return items
    kept = [item for item in items if item.category != avoid_category]
    return kept or items


def select_recipe(buckets, state, rng, avoid_category=None):
    """
    Pick the recipe for one slot.

    Order of preference: a novelty while under the cap, then a favorite on a
    favorite_ratio coin flip, then an "other", then the first recipe of any
    bucket. Favorites, novelties and others are walked cyclically.

    Args:
        buckets: RecipeBuckets of compliant recipes
        state: SelectionState before this slot
        rng: random source (only random() is used)
        avoid_category: recipe category to keep off this slot if possible

    Returns:
        (recipe, source, new_state) where source is 'novelties',
        'favorites', 'others' or 'fallback'

    Raises:
        NoCompliantCatalog: if every bucket is empty
    """
    favorites = _avoiding(buckets.favorites, avoid_category)
    novelties = _avoiding(buckets.novelties, avoid_category)
    others = _avoiding(buckets.others, avoid_category)

    if state.novelty_count < state.novelty_cap and novelties:
        recipe = novelties[state.novelty_index % len(novelties)]
        return recipe, 'novelties', state._replace(
            novelty_index=state.novelty_index + 1,
            novelty_count=state.novelty_count + 1,
        )

    if favorites and rng.random() < state.favorite_ratio:
        recipe = favorites[state.favorite_index % len(favorites)]
        return recipe, 'favorites', state._replace(favorite_index=state.favorite_index + 1)

    if others:
        recipe = others[state.other_index % len(others)]
        return recipe, 'others', state._replace(other_index=state.other_index + 1)

    available = favorites + novelties + others
    if available:
        return available[0], 'fallback', state

    raise NoCompliantCatalog(
        'No recipe matches the family diet profile. Add compliant recipes or relax the profile.'
    )


def select_components(buckets, recent_proteins, rng):
    """
    Assemble a build-your-own meal: one protein, one or two vegetables, one carb.

    The protein avoids the ids in recent_proteins when another one exists.

    Returns:
        List of (component, role) pairs in presentation order
    """
    if not buckets.proteins or not buckets.vegetables or not buckets.carbs:
        raise InsufficientCatalog('A component meal needs a protein, a vegetable and a carb')

    fresh_proteins = [p for p in buckets.proteins if p.id not in recent_proteins]
    protein_pool = fresh_proteins or buckets.proteins
    protein = protein_pool[rng.randrange(len(protein_pool))]

    vegetable_count = 1 if rng.random() < SINGLE_VEGETABLE_PROBABILITY else 2
    pool = list(buckets.vegetables)
    vegetables = []
    for _ in range(min(vegetable_count, len(pool))):
        vegetables.append(pool.pop(rng.randrange(len(pool))))

    carb = buckets.carbs[rng.randrange(len(buckets.carbs))]

    selected = [(protein, 'MAIN_PROTEIN'), (vegetables[0], 'PRIMARY_VEGETABLE')]
    selected.extend((veg, 'SECONDARY_VEGETABLE') for veg in vegetables[1:])
    selected.append((carb, 'BASE_CARB'))
    return selected


def remember_protein(recent_proteins, protein_id):
    """Return the recent-protein history with protein_id appended (FIFO, bounded)."""
    history = list(recent_proteins) + [protein_id]
    return history[-RECENT_PROTEIN_HISTORY:]
