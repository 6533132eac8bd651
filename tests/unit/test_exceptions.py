"""Unit tests for core/exceptions.py."""

import pytest

from core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CatalogServiceError,
    DuplicateEntryError,
    InvalidIdError,
    MailDeliveryError,
    NotFoundError,
    ServiceInitializationError,
    UploadRejectedError,
    ValidationFailedError,
)


class TestCatalogServiceError:
    """Tests for the base exception class."""

    def test_message_attribute(self):
        err = CatalogServiceError("something went wrong")
        assert err.message == "something went wrong"

    def test_str_output(self):
        err = CatalogServiceError("something went wrong")
        assert str(err) == "something went wrong"

    def test_details_default_empty(self):
        err = CatalogServiceError("msg")
        assert err.details == {}

    def test_details_provided(self):
        err = CatalogServiceError("msg", details={"field": "name"})
        assert err.details == {"field": "name"}

    def test_default_status_is_500(self):
        assert CatalogServiceError("msg").status_code == 500


class TestInvalidIdError:
    def test_default_message(self):
        assert InvalidIdError().message == "Invalid ID format"


STATUS_CODES = [
    (ValidationFailedError, 400),
    (InvalidIdError, 400),
    (DuplicateEntryError, 400),
    (UploadRejectedError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (MailDeliveryError, 500),
    (ServiceInitializationError, 500),
]


@pytest.mark.parametrize("cls,status", STATUS_CODES, ids=lambda v: getattr(v, "__name__", str(v)))
class TestExceptionSubclasses:
    """All subclasses inherit from CatalogServiceError and map to an HTTP status."""

    def test_inherits_from_base(self, cls, status):
        err = cls("test")
        assert isinstance(err, CatalogServiceError)

    def test_message_and_details(self, cls, status):
        err = cls("detail msg", details={"a": 1})
        assert err.message == "detail msg"
        assert err.details == {"a": 1}
        assert str(err) == "detail msg"

    def test_status_code(self, cls, status):
        assert cls("test").status_code == status
