"""
Integration tests for margin-target calculations.
"""

import pytest


@pytest.fixture
def calculation(client, user1):
    response = client.post('/calculations', headers=user1['headers'], json={'name': 'Trapp'})
    assert response.status_code == 201
    return response.get_json()['calculation']


def test_create_uses_default_margin(client, user1, calculation):
    assert calculation['target_margin_percent'] == 15
    assert calculation['user_id'] == user1['id']


def test_name_required(client, user1):
    response = client.post('/calculations', headers=user1['headers'], json={'description': 'Uten navn'})
    assert response.status_code == 400
    assert response.get_json()['field'] == 'name'


def test_detail_with_summary(client, user1, calculation):
    client.post(f"/calculations/{calculation['id']}/lines", headers=user1['headers'], json={
        'description': 'Stål', 'quantity': 10, 'unit': 'kg', 'unitCost': 50
    })
    client.post(f"/calculations/{calculation['id']}/lines", headers=user1['headers'], json={
        'description': 'Arbeid', 'quantity': 2, 'unit': 'time', 'unitCost': 175
    })

    response = client.get(f"/calculations/{calculation['id']}", headers=user1['headers'])
    assert response.status_code == 200
    data = response.get_json()
    assert len(data['lines']) == 2
    assert data['summary']['totalCost'] == 850
    assert data['summary']['totalSales'] == pytest.approx(1000)
    assert data['summary']['marginAmount'] == pytest.approx(150)


def test_margin_of_hundred_gives_zero_sales(client, user1, calculation):
    client.put(f"/calculations/{calculation['id']}", headers=user1['headers'], json={'targetMarginPercent': 100})
    client.post(f"/calculations/{calculation['id']}/lines", headers=user1['headers'], json={
        'description': 'Stål', 'quantity': 1, 'unit': 'kg', 'unitCost': 50
    })
    summary = client.get(f"/calculations/{calculation['id']}", headers=user1['headers']).get_json()['summary']
    assert summary['totalSales'] == 0


def test_line_from_cost_item(client, user1, calculation, cost_item):
    response = client.post(f"/calculations/{calculation['id']}/lines", headers=user1['headers'], json={
        'costItemId': cost_item['id'], 'quantity': 4
    })
    assert response.status_code == 201
    line = response.get_json()['line']
    assert line['unit_cost'] == 650
    assert line['cost_item_name'] == 'Sveiser'


def test_list_includes_totals(client, user1, calculation):
    client.post(f"/calculations/{calculation['id']}/lines", headers=user1['headers'], json={
        'description': 'Stål', 'quantity': 2, 'unit': 'kg', 'unitCost': 85
    })
    calculations = client.get('/calculations', headers=user1['headers']).get_json()['calculations']
    assert calculations[0]['totalCost'] == 170
    assert calculations[0]['line_count'] == 1


def test_update_and_delete_line(client, user1, calculation):
    line = client.post(f"/calculations/{calculation['id']}/lines", headers=user1['headers'], json={
        'description': 'Stål', 'quantity': 1, 'unit': 'kg', 'unitCost': 10
    }).get_json()['line']

    response = client.put(f"/calculations/{calculation['id']}/lines/{line['id']}", headers=user1['headers'],
                          json={'quantity': 3})
    assert response.get_json()['line']['quantity'] == 3

    response = client.delete(f"/calculations/{calculation['id']}/lines/{line['id']}", headers=user1['headers'])
    assert response.status_code == 200
    data = client.get(f"/calculations/{calculation['id']}", headers=user1['headers']).get_json()
    assert data['lines'] == []


@pytest.mark.parametrize('field,value', [('quantity', 0), ('unitCost', -1)])
def test_invalid_line(client, user1, calculation, field, value):
    body = {'description': 'X', 'quantity': 1, 'unit': 'stk', 'unitCost': 1}
    body[field] = value
    response = client.post(f"/calculations/{calculation['id']}/lines", headers=user1['headers'], json=body)
    assert response.status_code == 400
    assert response.get_json()['field'] == field


def test_negative_margin_rejected(client, user1, calculation):
    response = client.put(f"/calculations/{calculation['id']}", headers=user1['headers'],
                          json={'targetMarginPercent': -1})
    assert response.status_code == 400


def test_delete_calculation(client, user1, calculation):
    assert client.delete(f"/calculations/{calculation['id']}", headers=user1['headers']).status_code == 200
    assert client.get(f"/calculations/{calculation['id']}", headers=user1['headers']).status_code == 404
