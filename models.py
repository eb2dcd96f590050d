from typing import Any, Literal
from pydantic import (
    BaseModel,
    ConfigDict,
    field_validator,
)
from enum import StrEnum


class ApiVersion(StrEnum):
    V1 = "admission.k8s.io/v1"


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#status-v1-meta
class StatusReason(StrEnum):
    FORBIDDEN = "Forbidden"


class AdmissionReviewStatus(BaseModel):
    message: str
    reason: StatusReason | None = None


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionResponse
class AdmissionResponse(BaseModel):
    uid: str
    allowed: bool
    status: AdmissionReviewStatus | None = None


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionRequest
class AdmissionRequest(BaseModel):
    uid: str
    namespace: str = ""

    # The embedded object is left untyped here; it is only interpreted as a
    # Pod when the workload is extracted.
    object: Any = None

    @field_validator("namespace", mode="before")
    @classmethod
    def validate_namespace(cls, val):
        return "" if val is None else val


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionReview
class AdmissionReview(BaseModel):
    """An inbound review. Unlike the response envelope, apiVersion and kind
    have no defaults: a review that does not say what it is gets rejected."""

    apiVersion: Literal["admission.k8s.io/v1"]
    kind: Literal["AdmissionReview"]
    request: AdmissionRequest


class AdmissionReviewResponse(BaseModel):
    apiVersion: Literal[ApiVersion.V1] = ApiVersion.V1
    kind: Literal["AdmissionReview"] = "AdmissionReview"
    response: AdmissionResponse


# Quantities are passed through as-is; only resource names are ever examined.
Quantity = str | int | float


class ResourceRequirements(BaseModel):
    requests: dict[str, Quantity] = {}

    @field_validator("requests", mode="before")
    @classmethod
    def validate_null(cls, val):
        return {} if val is None else val


class Container(BaseModel):
    name: str | None = None
    resources: ResourceRequirements = ResourceRequirements()

    @field_validator("resources", mode="before")
    @classmethod
    def validate_resources(cls, val):
        return {} if val is None else val


class PodSpec(BaseModel):
    containers: list[Container] = []
    initContainers: list[Container] = []

    @field_validator("containers", "initContainers", mode="before")
    @classmethod
    def validate_containers(cls, val):
        return [] if val is None else val


class Pod(BaseModel):
    spec: PodSpec


class ContainerSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    requests: dict[str, Quantity] = {}


class WorkloadSpec(BaseModel):
    """Every container in a pod, primary containers first and then init
    containers, in the order they were declared."""

    model_config = ConfigDict(frozen=True)

    containers: tuple[ContainerSpec, ...] = ()


class AdmissionVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    message: str | None = None
    reason: StatusReason | None = None
