import pytest

import validate
from policy import ResourcePolicy


PREFIXES = "nvidia.com,amd.com"


class FakeProvider:
    def __init__(self, kubeconfig=None):
        self.kubeconfig = kubeconfig


@pytest.fixture()
def app():
    app = validate.create_app(
        PROVIDER=FakeProvider,
        TESTING=True,
        GPU_PREFIXES=PREFIXES,
    )
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def policy():
    return ResourcePolicy(disallowed_prefixes=PREFIXES)
