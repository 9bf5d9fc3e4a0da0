from careguard.error_handler import (
    AuthorizationError,
    ConfigurationError,
    ConnectivityError,
    ErrorHandler,
    RecordNotFoundError,
)
from careguard.validation import FormValidationError


def test_handle_exception_returns_payload():
    eh = ErrorHandler()
    out = eh.handle_exception(Exception("boom"), context={"k": "v"})
    assert out["error"] == "internal_error"
    assert "internal error" in out["message"].lower()
    assert out["detail"] == "boom"
    assert out["metadata"]["context"] == {"k": "v"}


def test_store_errors_map_to_status_codes():
    eh = ErrorHandler()
    assert eh.to_http_exception(ConfigurationError("no table")).status_code == 503
    assert eh.to_http_exception(ConnectivityError("down")).status_code == 503
    assert eh.to_http_exception(AuthorizationError("expired")).status_code == 401
    assert eh.to_http_exception(RecordNotFoundError("gone")).status_code == 404
    assert eh.to_http_exception(RuntimeError("?")).status_code == 500


def test_validation_errors_map_to_422():
    exc = ErrorHandler().to_http_exception(FormValidationError(field_errors={"name": "Name is required"}))
    assert exc.status_code == 422
    assert exc.detail["field_errors"] == {"name": "Name is required"}


def test_banner_prompts():
    assert ErrorHandler.banner_for(None) is None
    assert ErrorHandler.banner_for(ConfigurationError("x"))["prompt"] == "setup"
    assert ErrorHandler.banner_for(ConnectivityError("x"))["prompt"] == "offline"
    assert ErrorHandler.banner_for(AuthorizationError("x"))["prompt"] == "login"
    assert ErrorHandler.banner_for(RecordNotFoundError("x"))["prompt"] == "error"
