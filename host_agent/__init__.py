"""
Docker Host Agent
=================

The daemon that runs on a managed host and keeps one websocket open to the
controller.

What it does:
  1. Send a Start message: token, telemetry, full image/container inventory
  2. Execute controller commands: start/stop/remove containers, remove
     images, run scripts or shell commands, reboot the host
  3. Answer every idle poll with a queued Docker change event or fresh
     telemetry
  4. Watch Docker every 10s and queue Added/Updated/Removed events

Requirements:
  pip install psutil docker websockets

Usage:
  python -m host_agent --config /etc/host-agent/config.json
"""

__version__ = "0.1.0"
