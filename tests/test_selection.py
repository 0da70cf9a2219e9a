"""
Recipe and component selection primitives
"""

from types import SimpleNamespace

import pytest

from services.selection import (
    ComponentBuckets,
    initial_state,
    partition_recipes,
    remember_protein,
    select_components,
    select_recipe,
)
from tests.factories import ScriptedRandom
from utils.errors import InsufficientCatalog, NoCompliantCatalog


def recipe(id, category='other', favorite=False, novelty=False):
    return SimpleNamespace(id=id, title=f'Recipe {id}', category=category,
                           is_favorite=favorite, is_novelty=novelty)


def component(id, category):
    return SimpleNamespace(id=id, name=f'{category} {id}', category=category)


def profile(max_novelties=2, favorite_ratio=0.6):
    return SimpleNamespace(max_novelties=max_novelties, favorite_ratio=favorite_ratio)


def test_novelty_cap_never_exceeds_two():
    assert initial_state(profile(max_novelties=5)).novelty_cap == 2
    assert initial_state(profile(max_novelties=1)).novelty_cap == 1
    assert initial_state(profile(max_novelties=0)).novelty_cap == 0


def test_partition_puts_recipes_in_buckets():
    buckets = partition_recipes([recipe(1, favorite=True), recipe(2, novelty=True), recipe(3)])
    assert [r.id for r in buckets.favorites] == [1]
    assert [r.id for r in buckets.novelties] == [2]
    assert [r.id for r in buckets.others] == [3]


def test_novelties_come_first_until_the_cap():
    buckets = partition_recipes([recipe(1, novelty=True), recipe(2, novelty=True),
                                 recipe(3, novelty=True), recipe(4)])
    state = initial_state(profile())
    rng = ScriptedRandom()

    sources = []
    for _ in range(4):
        picked, source, state = select_recipe(buckets, state, rng)
        sources.append((picked.id, source))

    assert sources == [(1, 'novelties'), (2, 'novelties'), (4, 'others'), (4, 'others')]
    assert state.novelty_count == 2


def test_favorite_coin_flip():
    buckets = partition_recipes([recipe(1, favorite=True), recipe(2)])
    state = initial_state(profile(max_novelties=0))

    picked, source, state = select_recipe(buckets, state, ScriptedRandom([0.1]))
    assert (picked.id, source) == (1, 'favorites')
    assert state.favorite_index == 1

    picked, source, state = select_recipe(buckets, state, ScriptedRandom([0.9]))
    assert (picked.id, source) == (2, 'others')
    assert state.other_index == 1


def test_favorites_are_walked_cyclically():
    buckets = partition_recipes([recipe(1, favorite=True), recipe(2, favorite=True)])
    state = initial_state(profile())
    rng = ScriptedRandom(default_random=0.0)

    picked_ids = []
    for _ in range(5):
        picked, _, state = select_recipe(buckets, state, rng)
        picked_ids.append(picked.id)

    assert picked_ids == [1, 2, 1, 2, 1]


def test_fallback_takes_first_available_without_moving_cursors():
    buckets = partition_recipes([recipe(7, favorite=True)])
    state = initial_state(profile())

    picked, source, new_state = select_recipe(buckets, state, ScriptedRandom([0.95]))

    assert (picked.id, source) == (7, 'fallback')
    assert new_state == state


def test_empty_catalog_raises():
    with pytest.raises(NoCompliantCatalog):
        select_recipe(partition_recipes([]), initial_state(profile()), ScriptedRandom())


def test_avoid_category_skips_matching_recipes():
    buckets = partition_recipes([recipe(1, 'pasta', favorite=True), recipe(2, 'fish', favorite=True)])
    picked, _, _ = select_recipe(buckets, initial_state(profile()), ScriptedRandom([0.1]), 'pasta')
    assert picked.id == 2


def test_avoid_category_is_dropped_when_it_empties_a_bucket():
    buckets = partition_recipes([recipe(1, 'pasta', favorite=True)])
    picked, source, _ = select_recipe(buckets, initial_state(profile()), ScriptedRandom([0.1]), 'pasta')
    assert (picked.id, source) == (1, 'favorites')


def full_component_buckets():
    return ComponentBuckets(
        proteins=[component(1, 'PROTEIN'), component(2, 'PROTEIN'), component(3, 'PROTEIN')],
        vegetables=[component(10, 'VEGETABLE'), component(11, 'VEGETABLE')],
        carbs=[component(20, 'CARB')],
    )


def test_single_vegetable_meal():
    picked = select_components(full_component_buckets(), [], ScriptedRandom([0.5], [0, 1, 0]))

    assert [(c.id, role) for c, role in picked] == [
        (1, 'MAIN_PROTEIN'), (11, 'PRIMARY_VEGETABLE'), (20, 'BASE_CARB'),
    ]


def test_two_distinct_vegetables():
    picked = select_components(full_component_buckets(), [], ScriptedRandom([0.7], [0, 1, 0, 0]))

    roles = [role for _, role in picked]
    vegetables = [c.id for c, role in picked if role.endswith('VEGETABLE')]
    assert roles == ['MAIN_PROTEIN', 'PRIMARY_VEGETABLE', 'SECONDARY_VEGETABLE', 'BASE_CARB']
    assert sorted(vegetables) == [10, 11]


def test_recent_proteins_are_avoided():
    picked = select_components(full_component_buckets(), [1, 2], ScriptedRandom([0.1], [0, 0, 0]))
    assert picked[0][0].id == 3


def test_recent_proteins_reused_when_nothing_else_left():
    buckets = full_component_buckets()._replace(proteins=[component(1, 'PROTEIN')])
    picked = select_components(buckets, [1], ScriptedRandom([0.1]))
    assert picked[0][0].id == 1


def test_missing_bucket_raises():
    buckets = full_component_buckets()._replace(carbs=[])
    with pytest.raises(InsufficientCatalog):
        select_components(buckets, [], ScriptedRandom())


def test_protein_history_keeps_last_two():
    history = remember_protein([], 1)
    history = remember_protein(history, 2)
    history = remember_protein(history, 3)
    assert history == [2, 3]
