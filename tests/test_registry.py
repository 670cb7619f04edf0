import pytest

from scanstore.registry import rest_in_peace


def test_returns_what_factory_builds():
    sentinel = object()
    assert rest_in_peace(lambda: sentinel) is sentinel


def test_passes_arguments_through():
    result = rest_in_peace(lambda a, b=None: (a, b), "scheme", b="store")
    assert result == ("scheme", "store")


def test_failure_is_fatal_and_chained():
    original = ValueError("bad config")

    def failing():
        raise original

    with pytest.raises(RuntimeError) as info:
        rest_in_peace(failing)
    assert str(info.value) == (
        "unable to create REST storage for a resource due to bad config, will die"
    )
    assert info.value.__cause__ is original