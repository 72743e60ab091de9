import pytest

from agentprobe.core.errors import CommandNotFoundError, ProbeTimeoutError
from agentprobe.detection.classifier import resolve_message, resolve_status
from agentprobe.providers.catalog import PROVIDER_CATALOG
from agentprobe.providers.models import CommandResult, ProviderDefinition, StatusCode


GENERIC = ProviderDefinition(id="tool", name="Tool", commands=("tool",))


def _result(**kwargs) -> CommandResult:
    kwargs.setdefault("command", "tool")
    kwargs.setdefault("success", False)
    return CommandResult(**kwargs)


@pytest.mark.unit
class TestResolveStatus:
    def test_success_is_connected(self) -> None:
        result = _result(success=True, status=0, stdout="tool 2.3.1\n")
        assert resolve_status(GENERIC, result) is StatusCode.CONNECTED

    def test_resolved_path_alone_is_connected(self) -> None:
        result = _result(status=1, resolved_path="/usr/local/bin/tool")
        assert resolve_status(GENERIC, result) is StatusCode.CONNECTED

    def test_timeout_with_output_is_connected(self) -> None:
        result = _result(
            stdout="Loading...",
            timed_out=True,
            error=ProbeTimeoutError(command="tool", timeout_ms=3000),
        )
        assert resolve_status(GENERIC, result) is StatusCode.CONNECTED

    def test_timeout_without_output_or_path_is_error(self) -> None:
        result = _result(
            timed_out=True, error=ProbeTimeoutError(command="tool", timeout_ms=3000)
        )
        assert resolve_status(GENERIC, result) is StatusCode.ERROR

    def test_nonzero_exit_with_output_is_connected(self) -> None:
        result = _result(status=2, stderr="unknown flag --version")
        assert resolve_status(GENERIC, result) is StatusCode.CONNECTED

    def test_nonzero_exit_without_output_is_missing(self) -> None:
        result = _result(status=1)
        assert resolve_status(GENERIC, result) is StatusCode.MISSING

    def test_spawn_not_found_is_missing(self) -> None:
        result = _result(error=FileNotFoundError(2, "No such file or directory"))
        assert resolve_status(GENERIC, result) is StatusCode.MISSING

    def test_shell_not_found_is_missing(self) -> None:
        result = _result(error=CommandNotFoundError("tool: command not found"))
        assert resolve_status(GENERIC, result) is StatusCode.MISSING

    def test_permission_error_is_error(self) -> None:
        result = _result(error=PermissionError(13, "Permission denied"))
        assert resolve_status(GENERIC, result) is StatusCode.ERROR

    def test_empty_result_is_missing(self) -> None:
        assert resolve_status(GENERIC, _result(command="")) is StatusCode.MISSING

    def test_generic_policy_never_needs_key(self) -> None:
        results = [
            _result(success=True, status=0),
            _result(status=1, stderr="please log in"),
            _result(error=PermissionError(13, "denied")),
            _result(),
        ]
        assert all(
            resolve_status(GENERIC, r) is not StatusCode.NEEDS_KEY for r in results
        )

    def test_status_resolver_override_wins(self) -> None:
        definition = ProviderDefinition(
            id="keyed",
            name="Keyed",
            commands=("keyed",),
            status_resolver=lambda result: StatusCode.NEEDS_KEY,
        )
        result = _result(success=True, status=0)
        assert resolve_status(definition, result) is StatusCode.NEEDS_KEY


@pytest.mark.unit
class TestResolveMessage:
    def test_missing_names_the_provider(self) -> None:
        message = resolve_message(GENERIC, _result(), StatusCode.MISSING)
        assert message == "Tool was not found in PATH."

    def test_connected_has_no_message(self) -> None:
        result = _result(success=True, status=0)
        assert resolve_message(GENERIC, result, StatusCode.CONNECTED) is None

    def test_error_prefers_stderr(self) -> None:
        result = _result(stderr="  boom  \n", stdout="partial")
        assert resolve_message(GENERIC, result, StatusCode.ERROR) == "boom"

    def test_error_falls_back_to_stdout(self) -> None:
        result = _result(stderr="   ", stdout="only stdout\n")
        assert resolve_message(GENERIC, result, StatusCode.ERROR) == "only stdout"

    def test_error_falls_back_to_error_text(self) -> None:
        result = _result(error=PermissionError("Permission denied"))
        assert resolve_message(GENERIC, result, StatusCode.ERROR) == "Permission denied"

    def test_error_without_any_detail_is_none(self) -> None:
        assert resolve_message(GENERIC, _result(), StatusCode.ERROR) is None

    def test_codex_message_resolver(self) -> None:
        codex = next(d for d in PROVIDER_CATALOG if d.id == "codex")

        missing = resolve_message(codex, _result(command="codex"), StatusCode.MISSING)
        connected = resolve_message(
            codex, _result(command="codex", success=True), StatusCode.CONNECTED
        )

        assert missing is not None
        assert "@openai/codex" in missing
        assert connected is None
