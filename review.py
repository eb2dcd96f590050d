"""Conversion between the admission review wire format and the types used to
evaluate a workload.

A request flows through here twice: `decode_review` and `extract_workload` on
the way in, `assemble_response` and `encode_review` on the way out.
"""

import logging
import pydantic

from pydantic_core import PydanticSerializationError

from models import (
    AdmissionResponse,
    AdmissionReview,
    AdmissionReviewResponse,
    AdmissionReviewStatus,
    AdmissionVerdict,
    ContainerSpec,
    Pod,
    WorkloadSpec,
)
from exc import MalformedEnvelope, MalformedWorkload, ResponseEncodeFault

LOG = logging.getLogger(__name__)


def decode_review(body: bytes) -> AdmissionReview:
    """Parse an AdmissionReview from the request body.

    Fields we do not know about are ignored, but the apiVersion and kind must
    identify an admission.k8s.io/v1 AdmissionReview.
    """

    if not body:
        raise MalformedEnvelope("empty body")

    try:
        return AdmissionReview.model_validate_json(body)
    except pydantic.ValidationError as err:
        raise MalformedEnvelope(str(err)) from err


def extract_workload(review: AdmissionReview) -> WorkloadSpec:
    """Interpret the object embedded in an AdmissionReview as a Pod and
    collect its containers."""

    try:
        pod = Pod.model_validate(review.request.object)
    except pydantic.ValidationError as err:
        raise MalformedWorkload(str(err)) from err

    return WorkloadSpec(
        containers=tuple(
            ContainerSpec(name=container.name, requests=container.resources.requests)
            for container in pod.spec.containers + pod.spec.initContainers
        )
    )


def assemble_response(verdict: AdmissionVerdict, uid: str) -> AdmissionReviewResponse:
    status = None
    if not verdict.allowed:
        status = AdmissionReviewStatus(
            message=verdict.message or "", reason=verdict.reason
        )

    return AdmissionReviewResponse(
        response=AdmissionResponse(uid=uid, allowed=verdict.allowed, status=status)
    )


def encode_review(review: AdmissionReviewResponse) -> bytes:
    try:
        return review.model_dump_json(exclude_none=True).encode()
    except PydanticSerializationError as err:
        LOG.error("failed to serialize response: %s", err)
        raise ResponseEncodeFault(f"failed to marshal response: {err}") from err
