# Tests for crednet/oauth2/claims.py

from types import SimpleNamespace

import pytest

from crednet.oauth2.claims import allowed_claims, format_symbolic_name, project_user_info


@pytest.mark.parametrize('name, expected', [
    (None, '§(Anonymous)'),
    ('', '§(Anonymous)'),
    ('alice', '§(alice)'),
    ('§(alice)', '§(alice)'),
])
def test_format_symbolic_name(name, expected):
    assert format_symbolic_name(name) == expected


def test_symbolic_name_plain_strips_markers():
    user = SimpleNamespace(symbolic_name='§(alice)')
    info = project_user_info(7, user, ['symbolic_name'])
    assert info == {
        'sub': '7',
        'symbolic_name': '§(alice)',
        'symbolic_name_plain': 'alice',
    }


def test_unknown_scope_adds_nothing():
    user = SimpleNamespace(display_name='Alice', email='alice@example.com')
    assert project_user_info('u1', user, ['wallet']) == {'sub': 'u1'}
    assert allowed_claims(['wallet']) == {'sub'}


def test_allowed_claims():
    assert allowed_claims(['email', 'tokens']) == {
        'sub', 'email', 'email_verified', 'token_balance',
    }
