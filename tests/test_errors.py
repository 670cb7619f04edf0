from scanstore.errors import (
    OPERATION_NOT_SUPPORTED,
    InternalError,
    InvalidKeyError,
    InvalidObjectError,
    KeyNotFoundError,
    PreconditionError,
    StorageError,
)


def test_invalid_object_message_carries_key_and_reason():
    err = InvalidObjectError("random", OPERATION_NOT_SUPPORTED)
    assert str(err) == (
        "StorageError: invalid object, Code: 4, Key: random, "
        "ResourceVersion: 0, AdditionalErrorMsg: operation not supported"
    )


def test_key_not_found_fields():
    err = KeyNotFoundError("/a/b", 0)
    assert err.key == "/a/b"
    assert err.resource_version == 0
    assert err.code == 1
    assert "/a/b" in str(err)


def test_errors_compare_by_value():
    assert InvalidObjectError("k", OPERATION_NOT_SUPPORTED) == InvalidObjectError("k", OPERATION_NOT_SUPPORTED)
    assert InvalidObjectError("k", OPERATION_NOT_SUPPORTED) != InvalidObjectError("other", OPERATION_NOT_SUPPORTED)
    assert KeyNotFoundError("k") != InvalidObjectError("k")


def test_equal_errors_hash_alike():
    assert len({KeyNotFoundError("k"), KeyNotFoundError("k")}) == 1


def test_precondition_error_is_an_invalid_object_error():
    err = PreconditionError("k", "m")
    assert isinstance(err, InvalidObjectError)
    assert err.key == "k"
    assert err.message == "m"


def test_key_not_found_is_a_storage_error():
    err = KeyNotFoundError("k")
    assert isinstance(err, StorageError)
    assert err.key == "k"
    assert err.code == 1


def test_invalid_key_is_a_value_error():
    err = InvalidKeyError("k")
    assert isinstance(err, ValueError)
    assert str(err) == "Provided key is invalid"


def test_internal_error_is_a_storage_error():
    err = InternalError("x")
    assert isinstance(err, StorageError)
    assert str(err) == "x"


def test_internal_error_message_is_reason():
    assert str(InternalError("workload scan summary list is nil")) == "workload scan summary list is nil"


def test_invalid_key_message():
    err = InvalidKeyError("abc")
    assert str(err) == "Provided key is invalid"
    assert err.key == "abc"


def test_precondition_error_keeps_message():
    err = PreconditionError("/k", "Precondition failed")
    assert err.message == "Precondition failed"
    assert err.code == 4