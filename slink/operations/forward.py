"""Module with the operation that forwards local ports to the remote."""

import contextlib
from typing import List

from .common import Context, Operation

# Ports below this number can only be bound by root
PRIVILEGED_PORT_LIMIT = 1024


class ForwardOperation(Operation):
    """
    Forward local ports to the same ports on the remote until interrupted.

    Binding a privileged local port requires root, so ssh is started through sudo if
    any of the ports is privileged.
    """

    needs_mirror = False

    def __init__(self, ports: List[int]):
        """Instantiate the operation with the ports to forward."""
        self._ports = list(ports)

    def _execute(self, stack: contextlib.ExitStack, context: Context) -> int:
        options = ["-N"]

        for port in self._ports:
            options.extend(["-L", f"{port}:127.0.0.1:{port}"])

        command = context.session.ssh_command(options=options)

        if any(port < PRIVILEGED_PORT_LIMIT for port in self._ports):
            command = ["sudo"] + command

        return self._call(stack, command)
