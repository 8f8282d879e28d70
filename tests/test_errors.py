"""Tests for quire.errors and quire.data.errors: the exception hierarchy."""

import pytest

from quire.data.errors import (
    ConflictError,
    ConnectivityError,
    ConstraintError,
    DataError,
    DriverNotInstalledError,
    QueryError,
    StatementError,
)
from quire.errors import (
    ConfigurationError,
    HTTPError,
    MethodNotAllowed,
    NotFound,
    QuireError,
    StartupError,
)


class TestHierarchy:
    def test_startup_error_is_configuration_error(self) -> None:
        assert issubclass(StartupError, ConfigurationError)
        assert issubclass(ConfigurationError, QuireError)

    def test_http_errors(self) -> None:
        assert issubclass(NotFound, HTTPError)
        assert issubclass(MethodNotAllowed, HTTPError)
        assert issubclass(HTTPError, QuireError)

    @pytest.mark.parametrize(
        "cls", [ConnectivityError, StatementError, ConstraintError, ConflictError]
    )
    def test_query_errors(self, cls: type) -> None:
        assert issubclass(cls, QueryError)
        assert issubclass(cls, DataError)

    def test_conflict_is_constraint(self) -> None:
        assert issubclass(ConflictError, ConstraintError)

    def test_driver_not_installed_is_not_query_error(self) -> None:
        assert issubclass(DriverNotInstalledError, DataError)
        assert not issubclass(DriverNotInstalledError, QueryError)


class TestHTTPError:
    def test_str(self) -> None:
        assert str(HTTPError(status=400, detail="Bad")) == "400: Bad"
        assert str(HTTPError(status=500)) == "500"

    def test_not_found_defaults(self) -> None:
        err = NotFound()
        assert (err.status, err.detail) == (404, "Not Found")

    def test_method_not_allowed(self) -> None:
        err = MethodNotAllowed(frozenset({"POST", "GET"}))
        assert err.status == 405
        assert err.headers == (("Allow", "GET, POST"),)
        assert "GET, POST" in err.detail


class TestQueryError:
    def test_fields(self) -> None:
        err = StatementError("no such column: x", code="SQLITE_ERROR")
        assert err.message == "no such column: x"
        assert err.code == "SQLITE_ERROR"
        assert err.sql is None
        assert err.params == ()

    def test_with_statement(self) -> None:
        err = ConflictError("dup")
        assert err.with_statement("INSERT INTO t (a) VALUES (?)", [1]) is err
        assert err.sql == "INSERT INTO t (a) VALUES (?)"
        assert err.params == (1,)

    def test_str_without_code(self) -> None:
        assert str(QueryError("boom")) == "boom"
