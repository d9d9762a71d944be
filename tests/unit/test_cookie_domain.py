import pytest

from session_lib.adapters import MappingAdapter, SimpleRequest
from session_lib.session import SessionManager
from session_lib.storage import InMemorySessionStore
from tests.helpers import make_settings


def make_manager(**overrides):
    return SessionManager(make_settings(**overrides), InMemorySessionStore(), MappingAdapter())


@pytest.mark.parametrize('headers,expected', [
    ({'Origin': 'https://app.example.com'}, 'app.example.com'),
    ({'Origin': 'http://app.example.com:8443'}, 'app.example.com'),
    ({'Origin': 'https://app.example.com/some/path'}, 'app.example.com'),
    ({'Host': 'api.example.com:8000'}, 'api.example.com'),
    ({'Host': '[::1]:8000'}, '[::1]'),
    # Origin wins over Host
    ({'Origin': 'https://a.example.org', 'Host': 'b.example.net'}, 'a.example.org'),
    ({}, None),
])
def test_server_host_domain(headers, expected):
    mgr = make_manager()
    assert mgr.get_server_host_domain(SimpleRequest(headers=headers)) == expected


@pytest.mark.parametrize('host,expected', [
    ('app.tenant.example.com', 'example.com'),
    ('example.com', 'example.com'),
    ('localhost', None),
    ('127.0.0.1', None),
    ('[::1]', None),
])
def test_wildcard_domain_keeps_registrable_part(host, expected):
    mgr = make_manager()
    assert mgr.get_wildcard_cookie_domain(SimpleRequest(headers={'Host': host})) == expected


@pytest.mark.parametrize('host,expected', [
    ('app.tenant.internal.example', 'tenant.internal.example'),
    ('tenant.internal.example', 'tenant.internal.example'),
    ('internal.example', None),
    ('app.other.example', 'other.example'),
])
def test_wildcard_domain_with_configured_suffix(host, expected):
    mgr = make_manager(WildcardDomainSuffix='internal.example')
    assert mgr.get_wildcard_cookie_domain(SimpleRequest(headers={'Host': host})) == expected


def test_mobile_clients_get_host_only_cookie():
    mgr = make_manager()
    request = SimpleRequest(headers={
        'Host': 'app.example.com',
        'User-Agent': 'Mozilla/5.0 (iPhone; CPU iPhone OS 17_0) MyApp iOS/3.2',
    })
    assert mgr.get_wildcard_cookie_domain(request) is None


def test_mobile_pattern_is_configurable():
    mgr = make_manager(MobileUserAgentPattern='Android')
    ua = {'Host': 'app.example.com', 'User-Agent': 'MyApp iOS/3.2'}
    assert mgr.get_wildcard_cookie_domain(SimpleRequest(headers=ua)) == 'example.com'
    ua['User-Agent'] = 'MyApp Android/14'
    assert mgr.get_wildcard_cookie_domain(SimpleRequest(headers=ua)) is None
