import pytest
from chronoskit.acceptance_tests.drivers.in_memory_backend import InMemoryBackend, InMemoryExecutor
from chronoskit.acceptance_tests.dsl.gateway_dsl import GatewayDSL, ManualClock
from chronoskit.gateway import DocumentGateway


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def backend(clock):
    return InMemoryBackend(clock=clock)


@pytest.fixture
def executor(backend):
    return InMemoryExecutor(backend)


@pytest.fixture
def gateway(executor):
    return DocumentGateway("sqlite", "sqlite:///:memory:", executor=executor)


@pytest.fixture
def dsl(gateway, clock):
    return GatewayDSL(gateway, clock).as_user("root", "rootpw")
