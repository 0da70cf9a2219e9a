"""
JSON routes: status codes, the X-Member-Id header and response shapes
"""

import pytest

from tests.factories import make_family, member_with_role


@pytest.fixture()
def headers(family):
    return {'X-Member-Id': str(member_with_role(family, 'ADMIN').id)}


@pytest.fixture()
def child_headers(family):
    return {'X-Member-Id': str(member_with_role(family, 'CHILD').id)}


@pytest.fixture()
def plan_data(client, family, catalog, headers):
    response = client.post(f'/api/families/{family.id}/plans/generate',
                           json={'weekStartDate': '2026-10-19'}, headers=headers)
    assert response.status_code == 201
    return response.get_json()['data']


def test_generate_plan(client, family, catalog, headers):
    response = client.post(f'/api/families/{family.id}/plans/generate',
                           json={'weekStartDate': '2026-10-19'}, headers=headers)

    body = response.get_json()
    assert response.status_code == 201
    assert body['status'] == 'success'
    assert body['data']['status'] == 'DRAFT'
    assert body['data']['weekNumber'] == 43
    assert len(body['data']['meals']) == 9
    assert body['effects'] == {'audit': 'applied', 'notification': 'applied', 'shopping_list': 'applied'}


def test_member_header_is_required(client, family, catalog):
    response = client.post(f'/api/families/{family.id}/plans/generate',
                           json={'weekStartDate': '2026-10-19'})

    assert response.status_code == 400
    assert response.get_json() == {'status': 'error', 'error': 'X-Member-Id header is required'}


def test_bad_week_start(client, family, catalog, headers):
    response = client.post(f'/api/families/{family.id}/plans/generate',
                           json={'weekStartDate': 'next week'}, headers=headers)
    assert response.status_code == 400


def test_express_without_favorites(client, family, headers):
    response = client.post(f'/api/families/{family.id}/plans/express',
                           json={'weekStartDate': '2026-10-19'}, headers=headers)

    assert response.status_code == 422
    assert 'favorite' in response.get_json()['error']


def test_unknown_plan(client, headers):
    assert client.get('/api/plans/999', headers=headers).status_code == 404


def test_get_plan(client, plan_data, headers):
    response = client.get(f"/api/plans/{plan_data['id']}", headers=headers)
    assert response.get_json()['data']['id'] == plan_data['id']


def test_children_cannot_submit(client, plan_data, child_headers):
    response = client.post(f"/api/plans/{plan_data['id']}/submit", headers=child_headers)
    assert response.status_code == 403


def test_status_conflict(client, plan_data, headers):
    assert client.post(f"/api/plans/{plan_data['id']}/lock", headers=headers).status_code == 200
    assert client.post(f"/api/plans/{plan_data['id']}/submit", headers=headers).status_code == 409


def test_adjust_portions(client, plan_data, child_headers):
    meal_id = plan_data['meals'][0]['id']
    response = client.patch(f"/api/plans/{plan_data['id']}/meals/{meal_id}/portions",
                            json={'portions': 5}, headers=child_headers)

    assert response.status_code == 200
    assert response.get_json()['data']['portions'] == 5


def test_invalid_portions(client, plan_data, headers):
    meal_id = plan_data['meals'][0]['id']
    response = client.patch(f"/api/plans/{plan_data['id']}/meals/{meal_id}/portions",
                            json={'portions': 0}, headers=headers)
    assert response.status_code == 400


def test_duplicate_slot(client, plan_data, headers):
    response = client.post(f"/api/plans/{plan_data['id']}/meals",
                           json={'dayOfWeek': 'MONDAY', 'mealType': 'DINNER'}, headers=headers)
    assert response.status_code == 409


def test_comment_round_trip(client, plan_data, child_headers):
    meal_id = plan_data['meals'][0]['id']
    url = f"/api/plans/{plan_data['id']}/meals/{meal_id}/comments"

    created = client.post(url, json={'content': 'Miam'}, headers=child_headers)
    assert created.status_code == 201
    comment_id = created.get_json()['data']['id']

    deleted = client.delete(f'{url}/{comment_id}', headers=child_headers)
    assert deleted.status_code == 200
    assert deleted.get_json()['data'] is None


def test_shopping_list(client, plan_data, headers):
    response = client.get(f"/api/plans/{plan_data['id']}/shopping-list", headers=headers)

    items = response.get_json()['data']['items']
    assert response.status_code == 200
    assert items
    assert [i['order'] for i in items] == list(range(len(items)))


def test_change_log(client, plan_data, headers):
    client.post(f"/api/plans/{plan_data['id']}/submit", headers=headers)

    response = client.get(f"/api/plans/{plan_data['id']}/changes?limit=1", headers=headers)

    changes = response.get_json()['data']
    assert [c['changeType'] for c in changes] == ['PLAN_STATUS_CHANGED']
    assert changes[0]['descriptionEn'] == 'Admin Martin changed status from DRAFT to IN_VALIDATION'


def test_outsider_cannot_read_the_plan(client, plan_data):
    outsider = member_with_role(make_family('Other'), 'ADMIN')

    response = client.get(f"/api/plans/{plan_data['id']}", headers={'X-Member-Id': str(outsider.id)})
    assert response.status_code == 403


def test_templates(client, family, headers):
    created = client.post(f'/api/families/{family.id}/templates', headers=headers, json={
        'name': 'Dimanche',
        'schedule': [{'dayOfWeek': 'SUNDAY', 'mealTypes': ['LUNCH']}],
    })
    assert created.status_code == 201

    names = [t['name'] for t in client.get(f'/api/families/{family.id}/templates').get_json()['data']]
    assert names[-1] == 'Dimanche'

    template_id = created.get_json()['data']['id']
    assert client.delete(f'/api/templates/{template_id}', headers=headers).status_code == 200


def test_unknown_route_is_a_plain_404(client):
    assert client.get('/api/nothing-here').status_code == 404


def test_member_header_must_be_an_integer(client, plan_data):
    response = client.get(f"/api/plans/{plan_data['id']}", headers={'X-Member-Id': 'abc'})
    assert response.status_code == 400


def test_lock_flag_must_be_a_boolean(client, plan_data, headers):
    meal_id = plan_data['meals'][0]['id']
    url = f"/api/plans/{plan_data['id']}/meals/{meal_id}/lock"

    assert client.post(url, json={'locked': 'false'}, headers=headers).status_code == 400
    response = client.post(url, json={'locked': False}, headers=headers)
    assert response.get_json()['data']['locked'] is False


def test_toggle_shopping_item(client, plan_data, headers, child_headers):
    items = client.get(f"/api/plans/{plan_data['id']}/shopping-list", headers=headers).get_json()['data']['items']

    response = client.post(f"/api/shopping-items/{items[0]['id']}/toggle", headers=child_headers)

    assert response.status_code == 200
    assert response.get_json()['data']['checked'] is True

    patched = client.patch(f"/api/shopping-items/{items[0]['id']}", json={'checked': False}, headers=headers)
    assert patched.get_json()['data']['checked'] is False
