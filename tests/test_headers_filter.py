import pytest

from fregate.headers_filter import (
    SANITIZED_VALUE,
    Filter,
    HeadersFilter,
    get_filtered,
    get_headers_filter,
    pointer_and_deserialize,
    set_headers_filter,
)
from fregate.messages import Headers

ENV_KEYS = ("TEST_HEADERS_INCLUDE", "TEST_HEADERS_EXCLUDE", "TEST_HEADERS_SANITIZE")


@pytest.fixture
def env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def request_headers():
    return Headers(
        [
            ("PassworD", "PasswordValue"),
            ("authorization", "authorization"),
            ("is_client", "true"),
        ]
    )


def filtered_from_env():
    return get_filtered(request_headers(), HeadersFilter.from_env("TEST"))


def test_default_headers_ext(env):
    headers = filtered_from_env()
    assert headers.get("PassworD") == "PasswordValue"
    assert headers.get("authorization") == "authorization"
    assert headers.get("is_client") == "true"


def test_exclude_all(env):
    env.setenv("TEST_HEADERS_EXCLUDE", "*")
    headers = filtered_from_env()
    assert headers.get("PassworD") is None
    assert headers.get("authorization") is None
    assert headers.get("is_client") is None


def test_exclude_one(env):
    env.setenv("TEST_HEADERS_EXCLUDE", "password")
    headers = filtered_from_env()
    assert headers.get("PassworD") is None
    assert headers.get("authorization") == "authorization"
    assert headers.get("is_client") == "true"


def test_headers_ext(env):
    env.setenv("TEST_HEADERS_INCLUDE", "authorization,password")
    env.setenv("TEST_HEADERS_SANITIZE", "password,authorization")
    env.setenv("TEST_HEADERS_EXCLUDE", "password,")
    headers = filtered_from_env()
    assert headers.get("PassworD") is None, "Must be Excluded"
    assert headers.get("authorization") == SANITIZED_VALUE, "Included and sanitized"
    assert headers.get("is_client") is None, "Not included"


def test_include_all(env):
    env.setenv("TEST_HEADERS_INCLUDE", "*")
    headers = filtered_from_env()
    assert headers.get("PassworD") == "PasswordValue"
    assert headers.get("authorization") == "authorization"
    assert headers.get("is_client") == "true"


def test_include_one(env):
    env.setenv("TEST_HEADERS_INCLUDE", "password")
    headers = filtered_from_env()
    assert headers.get("PassworD") == "PasswordValue"
    assert headers.get("authorization") is None
    assert headers.get("is_client") is None


def test_sanitize_all(env):
    env.setenv("TEST_HEADERS_SANITIZE", "*")
    headers = filtered_from_env()
    assert headers.get("PassworD") == SANITIZED_VALUE
    assert headers.get("authorization") == SANITIZED_VALUE
    assert headers.get("is_client") == SANITIZED_VALUE


def test_sanitize_one(env):
    env.setenv("TEST_HEADERS_SANITIZE", "password")
    headers = filtered_from_env()
    assert headers.get("PassworD") == SANITIZED_VALUE
    assert headers.get("authorization") == "authorization"
    assert headers.get("is_client") == "true"


def test_filter_parse():
    assert Filter.parse(" * ") == Filter(everything=True)
    assert Filter.parse(" Password , LOGIN") == Filter(names=frozenset({"password", "login"}))
    assert Filter.parse(None) == Filter()


def test_filter_contains_is_case_insensitive():
    assert Filter.parse("password").contains("PassworD")
    assert not Filter.parse("password").contains("login")
    assert Filter.parse("*").contains("anything")


def test_from_config_missing_or_wrong_type_gives_empty_sets():
    headers_filter = HeadersFilter.from_config({"include": 5})
    assert headers_filter == HeadersFilter()
    assert get_filtered(request_headers(), headers_filter).items() == []


def test_from_config_reads_all_keys():
    headers_filter = HeadersFilter.from_config(
        {"include": "*", "exclude": "is_client", "sanitize": "authorization"}
    )
    assert get_filtered(request_headers(), headers_filter).items() == [
        ("password", "PasswordValue"),
        ("authorization", SANITIZED_VALUE),
    ]


def test_pointer_and_deserialize():
    config = {"a": {"b": "x", "list": ["first", "second"], "c/d": "slash"}}
    assert pointer_and_deserialize(config, "/a/b", str) == "x"
    assert pointer_and_deserialize(config, "/a/list/1", str) == "second"
    assert pointer_and_deserialize(config, "/a/c~1d", str) == "slash"


def test_pointer_missing_field():
    with pytest.raises(KeyError):
        pointer_and_deserialize({"a": {}}, "/a/b", str)
    with pytest.raises(KeyError):
        pointer_and_deserialize({"a": ["x"]}, "/a/3", str)


def test_pointer_wrong_type():
    with pytest.raises(TypeError):
        pointer_and_deserialize({"a": 1}, "/a", str)


def test_global_filter_is_set_once():
    installed = set_headers_filter(HeadersFilter.from_config({"include": "*"}))
    assert get_headers_filter() is installed
    again = set_headers_filter(HeadersFilter())
    assert again is installed
    assert get_filtered(request_headers()) == get_filtered(request_headers(), installed)