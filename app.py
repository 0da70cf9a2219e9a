"""
Family Meal Planner API

Thin JSON layer over the planning services. The acting family member is
given by the X-Member-Id header; planner errors map to HTTP status codes.
"""

import sqlite3

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_migrate import Migrate
from sqlalchemy import event
from sqlalchemy.engine import Engine
from werkzeug.exceptions import HTTPException

from config import get_config
from models import db
from services import audit, meals, planning, shopping, templates
from services.cutoff import ensure_member_of
from services.notifications import LoggingNotifier, NullNotifier
from services.selection import make_random
from utils.errors import PlannerError, ValidationError
from utils.logger import get_logger, set_log_level

logger = get_logger(__name__)

migrate = Migrate()
api = Blueprint('api', __name__, url_prefix='/api')


# ============================================
# APPLICATION FACTORY
# ============================================

def create_app(config_name=None):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    set_log_level(app.config['LOG_LEVEL'])

    db.init_app(app)
    migrate.init_app(app, db)

    if app.config['NOTIFICATIONS_ENABLED']:
        app.extensions['planner_notifier'] = LoggingNotifier()
    else:
        app.extensions['planner_notifier'] = NullNotifier()

    app.register_blueprint(api)
    app.register_error_handler(PlannerError, handle_planner_error)
    app.register_error_handler(Exception, handle_unexpected_error)
    return app


def handle_planner_error(error):
    if error.status_code >= 500:
        logger.error('Planner error: %s %s', error.message, error.context)
    else:
        logger.info('Rejected %s %s: %s', request.method, request.path, error.message)
    return jsonify({'status': 'error', 'error': error.message}), error.status_code


def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return error
    logger.exception('Unhandled error on %s %s', request.method, request.path)
    return jsonify({'status': 'error', 'error': 'Internal server error'}), 500


# ============================================
# REQUEST HELPERS
# ============================================

def acting_member_id():
    raw = request.headers.get('X-Member-Id')
    if not raw:
        raise ValidationError('X-Member-Id header is required')
    try:
        return int(raw)
    except ValueError:
        raise ValidationError('X-Member-Id must be an integer', value=raw) from None


def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def planner_rng():
    return make_random(current_app.config['PLANNER_RANDOM_SEED'])


def respond(result, status=200):
    """Serialize an OperationResult: the subject plus its side effect outcomes."""
    return jsonify({
        'status': 'success',
        'data': result.subject,
        'effects': {name: outcome.value for name, outcome in result.effects.items()},
    }), status


# ============================================
# SERIALIZERS
# ============================================

def meal_json(meal):
    return {
        'id': meal.id,
        'dayOfWeek': meal.day_of_week,
        'mealType': meal.meal_type,
        'recipe': {'id': meal.recipe.id, 'title': meal.recipe.title} if meal.recipe else None,
        'components': [
            {
                'id': mc.id,
                'componentId': mc.component_id,
                'name': mc.component.name,
                'role': mc.role,
                'quantity': mc.quantity,
                'unit': mc.unit,
            }
            for mc in meal.meal_components
        ],
        'portions': meal.portions,
        'locked': meal.locked,
        'isSchoolMeal': meal.is_school_meal,
        'isExternal': meal.is_external,
        'isSkipped': meal.is_skipped,
        'skipReason': meal.skip_reason,
        'guests': [{'adults': g.adults, 'children': g.children, 'note': g.note} for g in meal.guests],
        'comments': [
            {
                'id': c.id,
                'memberId': c.member_id,
                'content': c.content,
                'isEdited': c.is_edited,
                'createdAt': c.created_at.isoformat() if c.created_at else None,
            }
            for c in meal.comments
        ],
    }


def plan_json(plan):
    return {
        'id': plan.id,
        'familyId': plan.family_id,
        'templateId': plan.template_id,
        'weekStartDate': plan.week_start_date.isoformat(),
        'weekNumber': plan.week_number,
        'year': plan.year,
        'status': plan.status,
        'cutoffDate': plan.cutoff_date.isoformat() if plan.cutoff_date else None,
        'cutoffTime': plan.cutoff_time,
        'allowCommentsAfterCutoff': plan.allow_comments_after_cutoff,
        'validatedAt': plan.validated_at.isoformat() if plan.validated_at else None,
        'meals': [meal_json(meal) for meal in plan.meals],
    }


def shopping_item_json(item):
    return {
        'id': item.id,
        'name': item.name,
        'nameEn': item.name_en,
        'quantity': item.quantity,
        'unit': item.unit,
        'category': item.category,
        'alternatives': item.alternatives,
        'recipeNames': item.recipe_names,
        'inStock': item.in_stock,
        'checked': item.checked,
        'order': item.order,
    }


def shopping_list_json(shopping_list):
    return {
        'id': shopping_list.id,
        'weeklyPlanId': shopping_list.weekly_plan_id,
        'generatedAt': shopping_list.generated_at.isoformat() if shopping_list.generated_at else None,
        'items': [shopping_item_json(item) for item in shopping_list.items],
    }


def change_json(entry):
    return {
        'id': entry.id,
        'mealId': entry.meal_id,
        'memberId': entry.member_id,
        'changeType': entry.change_type,
        'description': entry.description,
        'descriptionEn': entry.description_en,
        'descriptionNl': entry.description_nl,
        'oldValue': entry.old_value,
        'newValue': entry.new_value,
        'createdAt': entry.created_at.isoformat() if entry.created_at else None,
    }


def _with(result, serializer):
    if result.subject is None:
        return result
    return result._replace(subject=serializer(result.subject))


def _meal_result(result):
    return _with(result, meal_json)


def _plain(row):
    return {'id': row.id}


# ============================================
# PLAN ROUTES
# ============================================

@api.route('/families/<int:family_id>/plans/generate', methods=['POST'])
def generate_plan(family_id):
    data = json_body()
    result = planning.generate_auto_plan(
        family_id,
        acting_member_id(),
        data.get('weekStartDate'),
        template_id=data.get('templateId'),
        rng=planner_rng(),
        notifier=current_app.extensions['planner_notifier'],
        default_template_name=current_app.config['DEFAULT_TEMPLATE_NAME'],
    )
    return respond(_with(result, plan_json), 201)


@api.route('/families/<int:family_id>/plans/express', methods=['POST'])
def generate_express_plan(family_id):
    data = json_body()
    result = planning.generate_express_plan(
        family_id,
        acting_member_id(),
        data.get('weekStartDate'),
        rng=planner_rng(),
        notifier=current_app.extensions['planner_notifier'],
    )
    return respond(_with(result, plan_json), 201)


@api.route('/families/<int:family_id>/templates', methods=['GET'])
def list_templates(family_id):
    return jsonify({'status': 'success', 'data': [
        {
            'id': t.id,
            'name': t.name,
            'description': t.description,
            'isSystem': t.is_system,
            'schedule': t.schedule,
        }
        for t in templates.list_templates(family_id)
    ]})


@api.route('/families/<int:family_id>/templates', methods=['POST'])
def create_template(family_id):
    data = json_body()
    template = templates.create_template(
        family_id, acting_member_id(), data.get('name'), data.get('schedule'),
        description=data.get('description'),
    )
    return jsonify({'status': 'success', 'data': {'id': template.id, 'name': template.name}}), 201


@api.route('/templates/<int:template_id>', methods=['DELETE'])
def delete_template(template_id):
    templates.delete_template(template_id, acting_member_id())
    return jsonify({'status': 'success'})


@api.route('/plans/<int:plan_id>', methods=['GET'])
def get_plan(plan_id):
    member = planning.load_member(acting_member_id())
    plan = planning.load_plan(plan_id)
    ensure_member_of(plan.family_id, member)
    return jsonify({'status': 'success', 'data': plan_json(plan)})


@api.route('/plans/<int:plan_id>/submit', methods=['POST'])
def submit_plan(plan_id):
    return respond(_with(planning.submit_for_validation(plan_id, acting_member_id()), plan_json))


@api.route('/plans/<int:plan_id>/validate', methods=['POST'])
def validate_plan(plan_id):
    return respond(_with(planning.validate_plan(plan_id, acting_member_id()), plan_json))


@api.route('/plans/<int:plan_id>/lock', methods=['POST'])
def lock_plan(plan_id):
    return respond(_with(planning.lock_plan(plan_id, acting_member_id()), plan_json))


@api.route('/plans/<int:plan_id>/cutoff', methods=['PUT'])
def set_cutoff(plan_id):
    data = json_body()
    result = planning.set_cutoff(
        plan_id, acting_member_id(),
        data.get('cutoffDate'), data.get('cutoffTime'),
        allow_comments_after_cutoff=data.get('allowCommentsAfterCutoff'),
    )
    return respond(_with(result, plan_json))


@api.route('/plans/<int:plan_id>/template', methods=['POST'])
def switch_template(plan_id):
    data = json_body()
    result = planning.switch_template(
        plan_id, acting_member_id(), data.get('templateId'), rng=planner_rng(),
    )
    return respond(_with(result, plan_json))


# ============================================
# MEAL ROUTES
# ============================================

@api.route('/plans/<int:plan_id>/meals', methods=['POST'])
def add_meal(plan_id):
    data = json_body()
    result = meals.add_meal(
        plan_id, acting_member_id(), data.get('dayOfWeek'), data.get('mealType'),
        recipe_id=data.get('recipeId'), portions=data.get('portions'),
    )
    return respond(_meal_result(result), 201)


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/portions', methods=['PATCH'])
def adjust_portions(plan_id, meal_id):
    data = json_body()
    result = meals.adjust_portions(plan_id, meal_id, acting_member_id(), data.get('portions'))
    return respond(_meal_result(result))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/swap', methods=['POST'])
def swap_recipe(plan_id, meal_id):
    data = json_body()
    result = meals.swap_recipe(plan_id, meal_id, acting_member_id(), data.get('recipeId'))
    return respond(_meal_result(result))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/lock', methods=['POST'])
def lock_meal(plan_id, meal_id):
    data = json_body()
    result = meals.set_meal_lock(plan_id, meal_id, acting_member_id(), data.get('locked', True))
    return respond(_meal_result(result))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/skip', methods=['POST'])
def skip_meal(plan_id, meal_id):
    data = json_body()
    result = meals.skip_meal(plan_id, meal_id, acting_member_id(), reason=data.get('reason'))
    return respond(_meal_result(result))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/restore', methods=['POST'])
def restore_meal(plan_id, meal_id):
    return respond(_meal_result(meals.restore_meal(plan_id, meal_id, acting_member_id())))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/guests', methods=['POST'])
def add_guests(plan_id, meal_id):
    data = json_body()
    result = meals.add_guests(
        plan_id, meal_id, acting_member_id(),
        adults=data.get('adults', 0), children=data.get('children', 0), note=data.get('note'),
    )
    return respond(_with(result, lambda g: {'id': g.id, 'adults': g.adults, 'children': g.children}))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/attendance', methods=['POST'])
def set_attendance(plan_id, meal_id):
    data = json_body()
    result = meals.set_attendance(
        plan_id, meal_id, acting_member_id(), data.get('status'),
        target_member_id=data.get('memberId'),
    )
    return respond(_with(result, lambda a: {'memberId': a.member_id, 'status': a.status}))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/vote', methods=['POST'])
def cast_vote(plan_id, meal_id):
    data = json_body()
    result = meals.cast_vote(
        plan_id, meal_id, acting_member_id(), data.get('type'), comment=data.get('comment'),
    )
    return respond(_with(result, lambda v: {'memberId': v.member_id, 'type': v.type}))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/comments', methods=['POST'])
def add_comment(plan_id, meal_id):
    data = json_body()
    result = meals.add_comment(plan_id, meal_id, acting_member_id(), data.get('content'))
    return respond(_with(result, lambda c: {'id': c.id, 'content': c.content}), 201)


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/comments/<int:comment_id>', methods=['PUT'])
def edit_comment(plan_id, meal_id, comment_id):
    data = json_body()
    result = meals.edit_comment(plan_id, meal_id, acting_member_id(), comment_id, data.get('content'))
    return respond(_with(result, lambda c: {'id': c.id, 'content': c.content, 'isEdited': c.is_edited}))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/comments/<int:comment_id>', methods=['DELETE'])
def delete_comment(plan_id, meal_id, comment_id):
    return respond(meals.delete_comment(plan_id, meal_id, acting_member_id(), comment_id))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/components', methods=['POST'])
def add_meal_component(plan_id, meal_id):
    data = json_body()
    result = meals.add_meal_component(
        plan_id, meal_id, acting_member_id(), data.get('componentId'),
        role=data.get('role', 'OTHER'), quantity=data.get('quantity'), unit=data.get('unit'),
    )
    return respond(_with(result, _plain), 201)


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/components/<int:meal_component_id>', methods=['DELETE'])
def remove_meal_component(plan_id, meal_id, meal_component_id):
    return respond(meals.remove_meal_component(plan_id, meal_id, acting_member_id(), meal_component_id))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/components/<int:meal_component_id>', methods=['PATCH'])
def update_meal_component(plan_id, meal_id, meal_component_id):
    data = json_body()
    result = meals.update_meal_component(
        plan_id, meal_id, acting_member_id(), meal_component_id,
        quantity=data.get('quantity'), unit=data.get('unit'), role=data.get('role'),
    )
    return respond(_with(result, _plain))


@api.route('/plans/<int:plan_id>/meals/<int:meal_id>/save-as-recipe', methods=['POST'])
def save_as_recipe(plan_id, meal_id):
    data = json_body()
    result = meals.save_component_meal_as_recipe(
        plan_id, meal_id, acting_member_id(),
        name=data.get('recipeName'), name_en=data.get('recipeNameEn'),
    )
    return respond(_with(result, lambda r: {'id': r.id, 'title': r.title, 'servings': r.servings}), 201)


# ============================================
# SHOPPING LIST & CHANGE LOG
# ============================================

@api.route('/plans/<int:plan_id>/shopping-list', methods=['GET'])
def get_shopping_list(plan_id):
    member = planning.load_member(acting_member_id())
    plan = planning.load_plan(plan_id)
    ensure_member_of(plan.family_id, member)
    shopping_list = shopping.get_shopping_list(plan.id)
    if shopping_list is None:
        shopping_list = shopping.generate_shopping_list(plan.id)
    return jsonify({'status': 'success', 'data': shopping_list_json(shopping_list)})


@api.route('/plans/<int:plan_id>/shopping-list', methods=['POST'])
def regenerate_shopping_list(plan_id):
    member = planning.load_member(acting_member_id())
    plan = planning.load_plan(plan_id)
    ensure_member_of(plan.family_id, member)
    shopping_list = shopping.generate_shopping_list(plan.id)
    return jsonify({'status': 'success', 'data': shopping_list_json(shopping_list)}), 201


@api.route('/shopping-items/<int:item_id>/toggle', methods=['POST'])
def toggle_shopping_item(item_id):
    item = shopping.toggle_item_checked(item_id, acting_member_id())
    return jsonify({'status': 'success', 'data': shopping_item_json(item)})


@api.route('/shopping-items/<int:item_id>', methods=['PATCH'])
def update_shopping_item(item_id):
    data = json_body()
    item = shopping.update_shopping_item(
        item_id, acting_member_id(),
        quantity=data.get('quantity'), unit=data.get('unit'),
        checked=data.get('checked'), in_stock=data.get('inStock'),
    )
    return jsonify({'status': 'success', 'data': shopping_item_json(item)})


@api.route('/plans/<int:plan_id>/changes', methods=['GET'])
def list_changes(plan_id):
    member = planning.load_member(acting_member_id())
    plan = planning.load_plan(plan_id)
    ensure_member_of(plan.family_id, member)
    limit = request.args.get('limit', type=int)
    return jsonify({'status': 'success', 'data': [
        change_json(entry) for entry in audit.list_changes(plan.id, limit=limit)
    ]})


# ============================================
# INITIALIZE DATABASE
# ============================================

@event.listens_for(Engine, 'connect')
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Enable SQLite foreign key enforcement
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def init_db(app):
    with app.app_context():
        db.create_all()
        templates.seed_system_templates()


if __name__ == '__main__':
    app = create_app()
    init_db(app)
    # host='0.0.0.0' allows access from other devices on the network
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000, use_reloader=False)
