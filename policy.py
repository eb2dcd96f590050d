import logging

from typing import Iterable
from typing_extensions import Protocol
from pydantic import BaseModel, ConfigDict, field_validator

from models import AdmissionVerdict, ContainerSpec, StatusReason, WorkloadSpec

LOG = logging.getLogger(__name__)

DEFAULT_PREFIXES = ("nvidia.com",)


class ContainerCheck(Protocol):
    """A single resource policy applied to one container.

    Returns a human readable violation message, or None if the container
    passes.
    """

    def __call__(self, container: ContainerSpec, namespace: str) -> str | None: ...


class DisallowedResourcePrefix(ContainerCheck):
    """Reject any resource request whose name starts with one of the given
    prefixes. Matching is case sensitive and a name equal to a prefix is a
    match."""

    def __init__(self, prefixes: Iterable[str]):
        self.prefixes = tuple(prefixes)

    def __call__(self, container, namespace):
        for resource_name in container.requests:
            for prefix in self.prefixes:
                if resource_name.startswith(prefix):
                    return (
                        f"GPU resource {resource_name} is not allowed "
                        f"in namespace {namespace}"
                    )

        return None


class ResourcePolicy(BaseModel):
    """Process-wide policy configuration. Built once at startup and never
    modified afterwards."""

    model_config = ConfigDict(frozen=True)

    disallowed_prefixes: tuple[str, ...] = DEFAULT_PREFIXES

    @field_validator("disallowed_prefixes", mode="before")
    @classmethod
    def validate_prefixes(cls, val):
        if val is None:
            raise ValueError("prefixes must be a string or a list of strings")
        if not isinstance(val, (list, tuple)):
            val = str(val).split(",")

        # An empty prefix would match every resource name.
        return tuple(str(prefix).strip() for prefix in val if str(prefix).strip())

    def checks(self) -> list[ContainerCheck]:
        """Checks are applied to each container in this order."""

        return [DisallowedResourcePrefix(self.disallowed_prefixes)]


def evaluate(
    workload: WorkloadSpec, policy: ResourcePolicy, namespace: str
) -> AdmissionVerdict:
    """Apply every check in the policy to every container in the workload.

    The first violation found stops evaluation and is the only one reported.
    """

    checks = policy.checks()

    for container in workload.containers:
        for check in checks:
            message = check(container, namespace)
            if message:
                return AdmissionVerdict(
                    allowed=False,
                    message=message,
                    reason=StatusReason.FORBIDDEN,
                )

    return AdmissionVerdict(allowed=True)
