from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from netbench.infra.config import Role
from netbench.infra.docker_control import LocalRunError, LocalTopologyRunner
from netbench.infra.task import container_spec_for

from .conftest import SERVER_ADDRESS


def _container(exit_code: int = 0) -> MagicMock:
    container = MagicMock()
    container.attrs = {"State": {"Running": True}}
    container.wait.return_value = {"StatusCode": exit_code}
    container.logs.return_value = b"client finished\n"
    return container


@pytest.fixture
def specs():
    server = container_spec_for(Role.SERVER, "netbench:latest", "echo")
    client = container_spec_for(
        Role.CLIENT, "netbench:latest", "echo", peer_address=SERVER_ADDRESS, bucket_name="bench-bucket"
    )
    return server, client


class TestLocalTopologyRunner:
    def test_runs_server_then_client_and_cleans_up(self, specs):
        server_spec, client_spec = specs
        docker_client = MagicMock()
        server, client = _container(), _container()
        docker_client.containers.run.side_effect = [server, client]
        network = docker_client.networks.create.return_value

        runner = LocalTopologyRunner(SERVER_ADDRESS, network_name="netbench-test", client=docker_client)
        result = runner.run(server_spec, client_spec)

        assert result.succeeded
        assert result.client_logs == "client finished\n"
        docker_client.networks.create.assert_called_once_with("netbench-test", driver="bridge")

        server_call, client_call = docker_client.containers.run.call_args_list
        assert server_call.kwargs["environment"] == {"SCENARIO": "echo", "PORT": "3000"}
        assert server_call.kwargs["mem_limit"] == "2048m"
        assert client_call.kwargs["environment"]["DNS_ADDRESS"] == SERVER_ADDRESS + ".serverecs.com"
        network.connect.assert_called_once_with(server, aliases=[SERVER_ADDRESS + ".serverecs.com"])

        server.remove.assert_called_once_with(force=True)
        client.remove.assert_called_once_with(force=True)
        network.remove.assert_called_once_with()

    def test_reports_client_failure(self, specs):
        docker_client = MagicMock()
        docker_client.containers.run.side_effect = [_container(), _container(exit_code=3)]

        result = LocalTopologyRunner(SERVER_ADDRESS, client=docker_client).run(*specs)

        assert result.exit_code == 3
        assert not result.succeeded

    def test_cleans_up_when_client_start_fails(self, specs):
        docker_client = MagicMock()
        server = _container()
        docker_client.containers.run.side_effect = [server, RuntimeError("no such image")]
        network = docker_client.networks.create.return_value

        with pytest.raises(RuntimeError, match="no such image"):
            LocalTopologyRunner(SERVER_ADDRESS, client=docker_client).run(*specs)

        server.remove.assert_called_once_with(force=True)
        network.remove.assert_called_once_with()

    def test_server_exit_during_startup_stops_the_run(self, specs):
        docker_client = MagicMock()
        server = _container()
        server.attrs = {"State": {"Status": "exited", "Running": False, "ExitCode": 1}}
        docker_client.containers.run.side_effect = [server]
        network = docker_client.networks.create.return_value

        runner = LocalTopologyRunner(SERVER_ADDRESS, startup_grace_seconds=60.0, client=docker_client)
        with pytest.raises(LocalRunError, match="exit code 1"):
            runner.run(*specs)

        assert docker_client.containers.run.call_count == 1
        server.remove.assert_called_once_with(force=True)
        network.remove.assert_called_once_with()
