"""
Integration tests for company settings.
"""

import pytest


def test_get_settings(client, user1):
    response = client.get('/settings', headers=user1['headers'])
    assert response.status_code == 200
    settings = response.get_json()['settings']
    assert settings['company_name'] == 'Sveis AS'
    assert settings['vat_percent'] == 25
    assert settings['default_validity_days'] == 30


def test_partial_update(client, user1):
    response = client.put('/settings', headers=user1['headers'], json={
        'orgNumber': '999 888 777',
        'city': 'Bergen',
        'vatPercent': '15'
    })
    assert response.status_code == 200
    settings = response.get_json()['settings']
    assert settings['org_number'] == '999 888 777'
    assert settings['city'] == 'Bergen'
    assert settings['vat_percent'] == 15
    assert settings['company_name'] == 'Sveis AS'


@pytest.mark.parametrize('field,value', [
    ('vatPercent', -1),
    ('defaultValidityDays', 0),
    ('defaultValidityDays', 2.5),
])
def test_invalid_values(client, user1, field, value):
    response = client.put('/settings', headers=user1['headers'], json={field: value})
    assert response.status_code == 400
    assert response.get_json()['field'] == field


def test_settings_are_per_user(client, user1, user2):
    client.put('/settings', headers=user1['headers'], json={'city': 'Bergen'})
    settings = client.get('/settings', headers=user2['headers']).get_json()['settings']
    assert settings['city'] is None
    assert settings['company_name'] == 'Stål AS'
