from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

import docker
from docker.errors import APIError
from docker.models.containers import Container
from docker.models.networks import Network

from .config import SERVER_DNS_SUFFIX, ContainerSpec

LOGGER = logging.getLogger("netbench.infra.docker")


class LocalRunError(Exception):
    """Raised when the local server container stops before the client starts."""


@dataclass
class LocalRunResult:
    exit_code: int
    client_logs: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class LocalTopologyRunner:
    """Rehearse the server/client topology on the local Docker engine.

    The server runs detached with a network alias equal to the name the
    client's ``DNS_ADDRESS`` points at; the client runs to completion.
    """

    def __init__(
        self,
        discovery_address: str,
        network_name: str | None = None,
        startup_grace_seconds: float = 20.0,
        client_timeout_seconds: float | None = None,
        client=None,
    ) -> None:
        self._dns_name = discovery_address + SERVER_DNS_SUFFIX
        self._network_name = network_name or f"netbench-{int(time.time())}"
        self._startup_grace_seconds = startup_grace_seconds
        self._client_timeout_seconds = client_timeout_seconds
        self._docker = client or docker.from_env()
        self._network: Optional[Network] = None
        self._containers: Dict[str, Container] = {}

    def run(self, server: ContainerSpec, client: ContainerSpec) -> LocalRunResult:
        try:
            self._network = self._docker.networks.create(self._network_name, driver="bridge")
            LOGGER.info("Created network %s", self._network_name)
            self._start_server(server)
            return self._run_client(client)
        finally:
            self._stop()

    def _start_server(self, spec: ContainerSpec) -> None:
        LOGGER.info("Starting server container from %s as %s", spec.image, self._dns_name)
        container = self._docker.containers.run(
            spec.image,
            name=f"{self._network_name}-server",
            detach=True,
            environment=spec.environment(),
            mem_limit=f"{spec.memory_limit_mib}m",
            network=self._network_name,
        )
        self._containers["server"] = container
        # Aliases can only be set on connect, so reattach under the discovery name.
        self._network.disconnect(container)
        self._network.connect(container, aliases=[self._dns_name])
        self._wait_for_startup(container)

    def _run_client(self, spec: ContainerSpec) -> LocalRunResult:
        LOGGER.info("Running client container from %s", spec.image)
        container = self._docker.containers.run(
            spec.image,
            name=f"{self._network_name}-client",
            detach=True,
            environment=spec.environment(),
            mem_limit=f"{spec.memory_limit_mib}m",
            network=self._network_name,
        )
        self._containers["client"] = container
        status = container.wait(timeout=self._client_timeout_seconds)
        exit_code = int(status.get("StatusCode", -1))
        logs = container.logs().decode("utf-8", errors="replace")
        LOGGER.info("Client container exited with status %d", exit_code)
        return LocalRunResult(exit_code=exit_code, client_logs=logs)

    def _wait_for_startup(self, container: Container) -> None:
        deadline = time.time() + self._startup_grace_seconds
        while time.time() < deadline:
            container.reload()
            state = container.attrs.get("State", {})
            if state.get("Status") in ("exited", "dead"):
                raise LocalRunError(
                    f"server container stopped during startup (exit code {state.get('ExitCode')})"
                )
            if state.get("Health"):
                if state["Health"].get("Status") == "healthy":
                    return
            elif state.get("Running", False):
                return
            time.sleep(1.0)
        LOGGER.warning("Server container may not be ready before the client starts")

    def _stop(self) -> None:
        for role, container in self._containers.items():
            LOGGER.debug("Removing %s container", role)
            with contextlib.suppress(APIError):
                container.remove(force=True)
        self._containers.clear()
        if self._network is not None:
            with contextlib.suppress(APIError):
                self._network.remove()
            self._network = None
