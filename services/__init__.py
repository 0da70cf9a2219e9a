"""
Services Package

Business logic of the meal planner: diet filtering, plan composition,
shopping list aggregation, cutoff enforcement and the change log.
"""

from .effects import OperationResult, SideEffectOutcome

from .diet import (
    filter_compliant,
    is_compliant,
    load_compliant_components,
    load_compliant_recipes,
)

from .selection import (
    make_random,
    select_components,
    select_recipe,
)

from .composer import (
    compose_express_week,
    compose_week,
)

from .shopping import (
    aggregate_meals,
    generate_shopping_list,
    refresh_shopping_list,
    round_quantity,
    toggle_item_checked,
    update_shopping_item,
)

from .cutoff import (
    check_can_modify_meal,
    ensure_can_mutate,
    is_after_cutoff,
)

from .audit import (
    describe_change,
    list_changes,
    record_change,
)

from .planning import (
    generate_auto_plan,
    generate_express_plan,
    lock_plan,
    set_cutoff,
    submit_for_validation,
    switch_template,
    validate_plan,
)

__all__ = [
    # Outcomes
    'OperationResult',
    'SideEffectOutcome',
    # Diet
    'filter_compliant',
    'is_compliant',
    'load_compliant_components',
    'load_compliant_recipes',
    # Selection
    'make_random',
    'select_components',
    'select_recipe',
    # Composer
    'compose_express_week',
    'compose_week',
    # Shopping
    'aggregate_meals',
    'generate_shopping_list',
    'refresh_shopping_list',
    'round_quantity',
    'toggle_item_checked',
    'update_shopping_item',
    # Cutoff
    'check_can_modify_meal',
    'ensure_can_mutate',
    'is_after_cutoff',
    # Audit
    'describe_change',
    'list_changes',
    'record_change',
    # Planning
    'generate_auto_plan',
    'generate_express_plan',
    'lock_plan',
    'set_cutoff',
    'submit_for_validation',
    'switch_template',
    'validate_plan',
]
