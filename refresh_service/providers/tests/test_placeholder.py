import pytest

from urllib.parse import parse_qs, urlsplit

from ..error import RequestSchemaError
from ..placeholder import (
    find_placeholder_value,
    format_value,
    is_placeholder,
    resolve_url,
)

SUBJECT = {
    "id": "did:iden3:polygon:mumbai:x3HstHLj2rTp6HHXk2WczYP7w3rpCsRbwCMeaQ2H2",
    "type": "Balance",
    "address": "0x6ae7E07c8763C284B7C91371f934E46c766D0ec6",
    "currency": "MATIC",
    "birthday": 19960424,
    "verified": True,
}


@pytest.mark.parametrize(
    "token,expected",
    [
        ("{{credentialSubject.address}}", True),
        ("{{ credentialSubject.address }}", True),
        ("{credentialSubject.address}", False),
        ("credentialSubject.address", False),
        ("{{credentialSubject.address", False),
    ],
)
def test_is_placeholder(token, expected):
    assert is_placeholder(token) is expected


def test_find_placeholder_value_ignores_namespace():
    assert find_placeholder_value("{{any.currency}}", SUBJECT) == "MATIC"
    assert find_placeholder_value("{{ other.currency }}", SUBJECT) == "MATIC"


def test_find_placeholder_value_bad_format():
    with pytest.raises(RequestSchemaError, match="invalid placeholder format"):
        find_placeholder_value("{{currency}}", SUBJECT)
    with pytest.raises(RequestSchemaError, match="invalid placeholder format"):
        find_placeholder_value("{{a.b.currency}}", SUBJECT)


def test_find_placeholder_value_missing():
    with pytest.raises(RequestSchemaError, match="not found value"):
        find_placeholder_value("{{credentialSubject.balance}}", SUBJECT)


def test_format_value():
    assert format_value("MATIC") == "MATIC"
    assert format_value(19960424) == "19960424"
    assert format_value(19960424.0) == "19960424"
    assert format_value(1.5) == "1.5"
    assert format_value(True) == "true"
    assert format_value(False) == "false"


def test_resolve_url_path_and_query():
    url = resolve_url(
        "https://api-testnet.polygonscan.com/api/currency/"
        "{{credentialSubject.currency}}",
        [
            ("module", "account"),
            ("address", "{{credentialSubject.address}}"),
        ],
        SUBJECT,
    )
    parts = urlsplit(url)
    assert parts.scheme == "https"
    assert parts.netloc == "api-testnet.polygonscan.com"
    assert parts.path == "/api/currency/MATIC"
    assert parts.query == (
        "address=0x6ae7E07c8763C284B7C91371f934E46c766D0ec6&module=account"
    )


def test_resolve_url_keeps_existing_query():
    url = resolve_url(
        "https://provider.example/users/{{s.birthday}}?token=abc",
        [("verified", "{{s.verified}}"), ("page", 2)],
        SUBJECT,
    )
    parts = urlsplit(url)
    assert parts.path == "/users/19960424"
    assert parse_qs(parts.query) == {
        "token": ["abc"],
        "verified": ["true"],
        "page": ["2"],
    }


def test_resolve_url_missing_field():
    with pytest.raises(RequestSchemaError):
        resolve_url("https://provider.example/{{s.unknown}}", [], SUBJECT)
    with pytest.raises(RequestSchemaError):
        resolve_url("https://provider.example/", [("q", "{{s.unknown}}")], SUBJECT)
