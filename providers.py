import logging

from kubernetes import config, client
from typing_extensions import Protocol

from exc import ProviderError

LOG = logging.getLogger(__name__)


class Provider(Protocol):
    core_v1: client.CoreV1Api


class KubernetesProvider(Provider):
    def __init__(self, kubeconfig: str | None = None):
        """Allocate a Kubernetes API client.

        If kubeconfig is None we try the default kubeconfig and then the
        in-cluster service account.
        """

        super().__init__()

        try:
            if kubeconfig:
                config.load_kube_config(config_file=kubeconfig)
            else:
                config.load_config()
        except config.ConfigException as err:
            LOG.warning("unable to configure Kubernetes client: %s", err)
            raise ProviderError("unable to configure Kubernetes client")

        self._client = client.ApiClient()
        self.core_v1 = client.CoreV1Api(self._client)
        LOG.info("successfully initialized kubernetes client")
