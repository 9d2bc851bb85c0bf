"""
Host Agent — Main Daemon
========================

Startup sequence:
  1. Load config.json (Ip, Token); create a default one and exit if missing
  2. Take the baseline Docker inventory for change detection
  3. Connect to ws://<Ip>/ws and send the Start message
  4. Receive thread: answer controller frames (commands, queued events,
     telemetry)
  5. Differ thread: queue container/image change events every --interval s

Shutdown:
  Both threads share one stop event. It is set by SIGTERM/SIGINT, by the
  receive loop when the connection drops, or by the differ when Docker
  becomes unreachable. The session is then closed and both threads joined.

Exit status:
  0  stopped by signal
  1  config created/invalid, startup failure, connection/Docker lost,
     or a worker thread crashed
"""

from __future__ import annotations
import argparse
import logging
import os
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from .config import DEFAULT_CONFIG_PATH, AgentConfig, ensure_config
from .differ import DEFAULT_INTERVAL, ResourceDiffer
from .dispatcher import CommandDispatcher
from .docker_manager import DockerResourceManager
from .errors import ConfigCreatedError, ConfigError, HandshakeError, ResourceManagerError
from .executor import ShellExecutor
from .outbound_queue import OutboundQueue
from .session import Session
from .telemetry import TelemetrySampler

log = logging.getLogger("host_agent.agent")

# ─── Logging ──────────────────────────────────────────────────────────────────

def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level  = getattr(logging, level.upper(), logging.INFO),
        format = "[%(asctime)s] %(levelname)s %(name)s — %(message)s",
        datefmt= "%Y-%m-%dT%H:%M:%S",
    )

# ─── Host Agent ───────────────────────────────────────────────────────────────

class HostAgent:
    def __init__(
        self,
        config:     AgentConfig,
        resources,
        executor,
        sampler,
        interval:   float = DEFAULT_INTERVAL,
        dial=None,
    ):
        self.config     = config
        self.stop_event = threading.Event()
        self.queue      = OutboundQueue()

        dispatcher = CommandDispatcher(resources, executor)
        session_kwargs = {"dial": dial} if dial is not None else {}
        self.session = Session(
            address    = config.ip,
            token      = config.token,
            queue      = self.queue,
            dispatcher = dispatcher,
            sampler    = sampler,
            resources  = resources,
            **session_kwargs,
        )
        self.differ = ResourceDiffer(resources, self.queue, interval)

        self._threads: list[threading.Thread] = []

    def start(self):
        """
        Seed the differ, connect and start both worker threads.
        Raises ResourceManagerError or HandshakeError on startup failure.
        """
        self.differ.seed()
        self.session.connect()

        self._threads = [
            threading.Thread(target=self.session.run, args=(self.stop_event,),
                             name="session-recv", daemon=True),
            threading.Thread(target=self.differ.run, args=(self.stop_event,),
                             name="docker-differ", daemon=True),
        ]
        for t in self._threads:
            t.start()

    def stop(self):
        self.stop_event.set()

    def wait(self, timeout: Optional[float] = None) -> int:
        """Block until the stop event fires, tear down, return the exit status."""
        self.stop_event.wait(timeout)
        self.stop_event.set()
        self.session.close()
        for t in self._threads:
            t.join(timeout=10)

        if self.session.transport_failed:
            log.error("Connection to controller lost — exiting")
            return 1
        if self.session.error is not None:
            log.error("Receive loop crashed — exiting")
            return 1
        if self.differ.error is not None:
            log.error("Change detection failed — exiting")
            return 1
        log.info("Agent stopped")
        return 0

    def run(self) -> int:
        log.info(f"Host agent starting — controller {self.config.ip}")
        try:
            self.start()
        except (ResourceManagerError, HandshakeError) as e:
            log.critical(f"Startup failed: {e}")
            self.session.close()
            return 1
        log.info("Agent ready (Ctrl+C to stop)")
        return self.wait()


# ─── Entry Point ──────────────────────────────────────────────────────────────

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Docker host agent")
    parser.add_argument("--config", type=Path,
                        default=Path(os.getenv("HOST_AGENT_CONFIG", str(DEFAULT_CONFIG_PATH))),
                        help="Path to config.json (default: ./config.json)")
    parser.add_argument("--interval", type=float,
                        default=float(os.getenv("HOST_AGENT_INTERVAL", str(DEFAULT_INTERVAL))),
                        help="Docker change detection interval in seconds (default: 10)")
    parser.add_argument("--disk-path", default=os.getenv("HOST_AGENT_DISK_PATH", "/"),
                        help="Mount point reported in disk telemetry (default: /)")
    parser.add_argument("--log-level", default=os.getenv("HOST_AGENT_LOG_LEVEL", "INFO"),
                        help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = ensure_config(args.config)
    except ConfigCreatedError as e:
        print(e)
        return 1
    except ConfigError as e:
        log.error(f"Invalid config: {e}")
        return 1

    agent = HostAgent(
        config    = config,
        resources = DockerResourceManager(),
        executor  = ShellExecutor(),
        sampler   = TelemetrySampler(disk_path=args.disk_path),
        interval  = args.interval,
    )

    signal.signal(signal.SIGTERM, lambda s, f: agent.stop())
    signal.signal(signal.SIGINT,  lambda s, f: agent.stop())

    return agent.run()


if __name__ == "__main__":
    sys.exit(main())
