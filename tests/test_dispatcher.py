import pytest

from host_agent.dispatcher import CommandDispatcher
from host_agent.messages import InboundKind, InboundMessage, OutboundKind, OutboundMessage
from host_agent.models import ExecResult, OperationResult


@pytest.fixture
def dispatcher(resources, executor):
    return CommandDispatcher(resources, executor)


def test_every_inbound_kind_is_mapped(dispatcher):
    assert set(dispatcher._handlers) == set(InboundKind)


@pytest.mark.parametrize("kind, call", [
    (InboundKind.START_CONTAINER, "start"),
    (InboundKind.STOP_CONTAINER, "stop"),
    (InboundKind.REMOVE_CONTAINER, "remove"),
    (InboundKind.REMOVE_IMAGE, "remove_image"),
])
def test_lifecycle_commands_return_result(dispatcher, resources, kind, call):
    response = dispatcher.dispatch(InboundMessage(int(kind), "abc123"))

    assert response == OutboundMessage(OutboundKind.RESULT, "")
    assert resources.calls == [(call, "abc123")]


def test_failed_lifecycle_still_acknowledged(dispatcher, resources):
    resources.results["stop"] = OperationResult(False, "stop container abc failed: no such container")

    response = dispatcher.dispatch(InboundMessage(int(InboundKind.STOP_CONTAINER), "abc"))

    assert response.kind is OutboundKind.RESULT
    assert response.data == "stop container abc failed: no such container"


def test_raising_collaborator_still_acknowledged(executor):
    class Exploding:
        def start(self, h):
            raise RuntimeError("boom")
        stop = remove = remove_image = start

    response = CommandDispatcher(Exploding(), executor).dispatch(
        InboundMessage(int(InboundKind.START_CONTAINER), "h")
    )
    assert response.kind is OutboundKind.RESULT
    assert "boom" in response.data


def test_script_and_command_return_output(dispatcher, executor):
    executor.command_result = ExecResult("partial\n", "exit status 2")

    script = dispatcher.dispatch(InboundMessage(int(InboundKind.RUN_SCRIPT), "echo hi"))
    command = dispatcher.dispatch(InboundMessage(int(InboundKind.RUN_COMMAND), "false"))

    assert script == OutboundMessage(OutboundKind.RESULT, "script output\n")
    assert command == OutboundMessage(OutboundKind.RESULT, "partial\n")
    assert executor.calls == [("script", "echo hi"), ("command", "false")]


@pytest.mark.parametrize("reboot_error", [None, "shutdown: permission denied"])
def test_restart_always_acknowledged(dispatcher, executor, reboot_error):
    executor.reboot_error = reboot_error

    response = dispatcher.dispatch(InboundMessage(int(InboundKind.RESTART), ""))

    assert response == OutboundMessage(OutboundKind.RESTARTED, "Ok")
    assert executor.calls == [("reboot", "")]


@pytest.mark.parametrize("msg_type", [int(InboundKind.OK), 8, 99, -1])
def test_ok_and_unknown_types_fall_through(dispatcher, resources, executor, msg_type):
    msg = InboundMessage(msg_type, "payload")

    assert not dispatcher.handles(msg)
    assert dispatcher.dispatch(msg) is None
    assert resources.calls == []
    assert executor.calls == []


def test_handles_recognized_commands(dispatcher):
    for kind in InboundKind:
        assert dispatcher.handles(InboundMessage(int(kind))) == (kind is not InboundKind.OK)


@pytest.mark.parametrize("kind", [InboundKind.RUN_SCRIPT, InboundKind.RUN_COMMAND])
def test_raising_executor_still_acknowledged(resources, kind):
    class Exploding:
        def run_script(self, text):
            raise ValueError("embedded null byte")
        run_command = run_script

    response = CommandDispatcher(resources, Exploding()).dispatch(InboundMessage(int(kind), "echo a\x00b"))

    assert response.kind is OutboundKind.RESULT
    assert "embedded null byte" in response.data


def test_raising_reboot_still_acknowledged(resources):
    class Exploding:
        def reboot(self):
            raise RuntimeError("no shutdown binary")

    response = CommandDispatcher(resources, Exploding()).dispatch(InboundMessage(int(InboundKind.RESTART)))

    assert response == OutboundMessage(OutboundKind.RESTARTED, "Ok")
