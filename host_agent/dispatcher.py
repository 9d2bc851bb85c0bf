"""
Command Dispatcher
==================

Maps one decoded controller command to exactly one collaborator call and
exactly one acknowledgment:

  StartContainer / StopContainer / RemoveContainer / RemoveImage
      → Docker lifecycle call on the payload hash        → Result(message)
  RunScript / RunCommand
      → executor, payload is the script/command text     → Result(output)
  Restart
      → reboot                                           → Restarted("Ok")
  Ok / unknown type
      → no response, the session applies its idle policy

A failed collaborator call is logged and still acknowledged with the same
message kind; the controller never waits on a missing response.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional

from .messages import InboundKind, InboundMessage, OutboundMessage
from .models import ExecResult, OperationResult

log = logging.getLogger(__name__)


class CommandDispatcher:
    def __init__(self, resources, executor):
        self.resources = resources
        self.executor  = executor

        # Every inbound kind has an entry; OK maps to None (idle policy)
        self._handlers: dict[InboundKind, Optional[Callable[[str], OutboundMessage]]] = {
            InboundKind.START_CONTAINER:  self._lifecycle("start", self.resources.start),
            InboundKind.STOP_CONTAINER:   self._lifecycle("stop", self.resources.stop),
            InboundKind.REMOVE_CONTAINER: self._lifecycle("remove", self.resources.remove),
            InboundKind.REMOVE_IMAGE:     self._lifecycle("remove image", self.resources.remove_image),
            InboundKind.RUN_SCRIPT:       self._run_script,
            InboundKind.RUN_COMMAND:      self._run_command,
            InboundKind.RESTART:          self._restart,
            InboundKind.OK:               None,
        }

    def handles(self, message: InboundMessage) -> bool:
        """True when the message is a command that gets a direct response."""
        kind = message.kind
        return kind is not None and self._handlers[kind] is not None

    def dispatch(self, message: InboundMessage) -> Optional[OutboundMessage]:
        """
        Run the command and return its acknowledgment.
        Returns None for Ok and unrecognized types.
        """
        kind = message.kind
        handler = self._handlers[kind] if kind is not None else None
        if handler is None:
            return None
        log.info(f"[dispatch] {kind.name} {message.data[:80]!r}")
        return handler(message.data)

    # ─── Docker lifecycle ─────────────────────────────────────────────────────

    def _lifecycle(self, op: str, call: Callable[[str], OperationResult]):
        def handle(resource_hash: str) -> OutboundMessage:
            try:
                result = call(resource_hash)
            except Exception as e:
                log.error(f"[dispatch] {op} {resource_hash} error: {e}")
                result = OperationResult(False, f"{op} failed: {e}")

            if not result.success:
                log.warning(f"[dispatch] {op} {resource_hash} failed: {result.message}")
            return OutboundMessage.result(result.message)
        return handle

    # ─── Executor ─────────────────────────────────────────────────────────────

    def _execute(self, what: str, call: Callable[[str], ExecResult], text: str) -> OutboundMessage:
        try:
            result = call(text)
        except Exception as e:
            log.error(f"[dispatch] {what} execution error: {e}")
            return OutboundMessage.result(f"{what} failed: {e}")

        if not result.ok:
            log.error(f"[dispatch] {what} execution error: {result.error}")
        return OutboundMessage.result(result.output)

    def _run_script(self, script: str) -> OutboundMessage:
        return self._execute("Script", self.executor.run_script, script)

    def _run_command(self, command: str) -> OutboundMessage:
        return self._execute("Command", self.executor.run_command, command)

    def _restart(self, _data: str) -> OutboundMessage:
        try:
            error = self.executor.reboot()
        except Exception as e:
            error = str(e)
        if error:
            log.error(f"[dispatch] Reboot error: {error}")
        return OutboundMessage.restarted()
