"""
Property-based tests for githuboss logging.

Feature: githuboss
"""

import io
import logging

from hypothesis import given, settings
from hypothesis import strategies as st

from githuboss.logging import (
    configure_logging,
    get_logger,
    log_http_request,
    log_http_response,
    log_probe_result,
    mask_sensitive_data,
    safe_log_dict,
)

# Strategies for generating test data
token_body_strategy = st.text(
    alphabet=st.sampled_from("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"),
    min_size=36,
    max_size=60,
)

token_prefix_strategy = st.sampled_from(["ghp_", "gho_", "ghu_", "ghs_", "ghr_"])

path_strategy = st.text(
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd"), whitelist_characters="/-_."),
    min_size=1,
    max_size=80,
)


def _capture(logger_name: str) -> tuple[io.StringIO, logging.Logger]:
    buffer = io.StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setLevel(logging.DEBUG)
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    logger.handlers = [handler]
    return buffer, logger


@given(prefix=token_prefix_strategy, body=token_body_strategy)
@settings(max_examples=100)
def test_property_classic_tokens_masked(prefix: str, body: str) -> None:
    """
    Property: No tokens in logs

    For any classic GitHub token embedded in text, mask_sensitive_data
    SHALL remove the token.
    """
    token = prefix + body
    masked = mask_sensitive_data(f"using credentials {token} for octo/images")

    assert token not in masked
    assert "[TOKEN_REDACTED]" in masked
    assert "octo/images" in masked


@given(body=token_body_strategy)
@settings(max_examples=50)
def test_property_fine_grained_tokens_masked(body: str) -> None:
    """
    Property: No tokens in logs

    Fine-grained personal access tokens SHALL be masked as well.
    """
    token = f"github_pat_{body}"
    masked = mask_sensitive_data(f'{{"token": "{token}"}}')

    assert token not in masked


@given(credential=token_body_strategy)
@settings(max_examples=50)
def test_property_bearer_values_masked(credential: str) -> None:
    """
    Property: No tokens in logs

    The value of a Bearer authorization SHALL never survive masking.
    """
    masked = mask_sensitive_data(f"Authorization: Bearer {credential}")

    assert credential not in masked
    assert "Bearer [REDACTED]" in masked


@given(
    token=st.text(min_size=10, max_size=50),
    password=st.text(min_size=10, max_size=50),
    path=path_strategy,
)
@settings(max_examples=100)
def test_property_safe_log_dict_masks_secrets(token: str, password: str, path: str) -> None:
    """
    Property: No sensitive data in logs

    For any dictionary containing token/authorization/password values,
    safe_log_dict SHALL mask those values and keep ordinary fields.
    """
    data = {
        "token": token,
        "Authorization": f"Bearer {token}",
        "password": password,
        "path": path,
        "branch": "main",
    }

    safe_data = safe_log_dict(data)

    assert safe_data["token"] == "[REDACTED]"
    assert safe_data["Authorization"] == "[REDACTED]"
    assert safe_data["password"] == "[REDACTED]"
    assert safe_data["path"] == path
    assert safe_data["branch"] == "main"


@given(payload=st.binary(min_size=1, max_size=300).map(lambda b: b.hex()))
@settings(max_examples=50)
def test_property_file_payload_replaced_by_length(payload: str) -> None:
    """
    Property: File payloads are not logged

    The base64 ``content`` of a commit body SHALL be replaced by its length.
    """
    safe_data = safe_log_dict({"message": "Upload a.png", "content": payload})

    assert safe_data["content"] == f"[{len(payload)} chars]"
    assert safe_data["message"] == "Upload a.png"


def test_safe_log_dict_nested() -> None:
    """Nested committer objects and lists are masked recursively."""
    data = {
        "committer": {"name": "bot", "token": "abc"},
        "items": [{"secret": "s"}, "plain"],
    }

    safe_data = safe_log_dict(data)

    assert safe_data["committer"] == {"name": "bot", "token": "[REDACTED]"}
    assert safe_data["items"] == [{"secret": "[REDACTED]"}, "plain"]


@given(
    method=st.sampled_from(["GET", "PUT", "DELETE"]),
    path=path_strategy,
    prefix=token_prefix_strategy,
    body=token_body_strategy,
)
@settings(max_examples=100)
def test_property_log_http_request_no_token(method: str, path: str, prefix: str, body: str) -> None:
    """
    Property: No tokens in logs

    For any HTTP request logged by githuboss, the output SHALL NOT contain
    the Authorization header value or the file payload.
    """
    buffer, _ = _capture("githuboss.http")
    token = prefix + body

    log_http_request(
        method,
        f"https://api.github.com/repos/octo/images/contents/{path}",
        headers={"Authorization": f"Bearer {token}"},
        body={"message": "Upload", "content": "QUJDRA==", "branch": "main"},
    )

    output = buffer.getvalue()
    assert token not in output
    assert "QUJDRA==" not in output
    assert method in output


@given(
    status_code=st.integers(min_value=200, max_value=599),
    prefix=token_prefix_strategy,
    body=token_body_strategy,
)
@settings(max_examples=100)
def test_property_log_http_response_no_token(status_code: int, prefix: str, body: str) -> None:
    """
    Property: No tokens in logs

    Response bodies echoing a token SHALL be masked before logging.
    """
    buffer, _ = _capture("githuboss.http")
    token = prefix + body

    log_http_response(
        status_code,
        "https://api.github.com/repos/octo/images/contents/a.png",
        body=f'{{"message": "bad credentials {token}"}}',
        elapsed_ms=12.5,
    )

    output = buffer.getvalue()
    assert token not in output
    assert f"Response {status_code}" in output
    assert "elapsed=12.50ms" in output


def test_log_http_request_skipped_above_debug() -> None:
    """Nothing is formatted when the http logger is above DEBUG."""
    buffer, logger = _capture("githuboss.http")
    logger.setLevel(logging.INFO)

    log_http_request("GET", "https://api.github.com/", headers={"Authorization": "Bearer x"})

    assert buffer.getvalue() == ""


def test_log_probe_result_levels() -> None:
    """Probe failures are warnings, successes are debug messages."""
    buffer, logger = _capture("githuboss.diagnostics")
    logger.setLevel(logging.WARNING)

    log_probe_result("github.com", True, "HTTP 200 in 40ms")
    log_probe_result("api.github.com", False, "connection refused")

    output = buffer.getvalue()
    assert "github.com ok" not in output
    assert "probe api.github.com failed: connection refused" in output


class TestConfigureLogging:
    """Tests for configure_logging and get_logger."""

    def test_levels_applied(self) -> None:
        buffer = io.StringIO()
        configure_logging(
            level=logging.WARNING,
            http_level=logging.DEBUG,
            diagnostics_level=logging.ERROR,
            handler=logging.StreamHandler(buffer),
            format_string="%(name)s:%(message)s",
        )

        assert logging.getLogger("githuboss").level == logging.WARNING
        assert logging.getLogger("githuboss.http").level == logging.DEBUG
        assert logging.getLogger("githuboss.diagnostics").level == logging.ERROR

        get_logger().warning("hello")
        assert "githuboss:hello" in buffer.getvalue()

        logging.getLogger("githuboss").handlers.clear()

    def test_sub_levels_default_to_main_level(self) -> None:
        handler = logging.StreamHandler(io.StringIO())
        configure_logging(level=logging.INFO, handler=handler)

        assert logging.getLogger("githuboss.http").level == logging.INFO
        assert logging.getLogger("githuboss.diagnostics").level == logging.INFO

        logging.getLogger("githuboss").handlers.clear()

    def test_get_logger_names(self) -> None:
        assert get_logger().name == "githuboss"
        assert get_logger("adapter").name == "githuboss.adapter"
