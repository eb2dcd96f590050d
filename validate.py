import argparse
import functools
import logging
import ssl
import sys

import pydantic

from flask import Flask, request, current_app
from werkzeug.serving import make_server

from models import BaseModel
from policy import ResourcePolicy, evaluate
from providers import KubernetesProvider
from review import assemble_response, decode_review, encode_review, extract_workload
from exc import (
    ApplicationError,
    EmptyRequest,
    MalformedEnvelope,
    MalformedWorkload,
    ProviderError,
    RequestError,
)

LOG = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class DEFAULTS:
    BIND_ADDRESS = "0.0.0.0"
    PORT = 8443
    TLS_CERT = "/etc/webhook/certs/tls.crt"
    TLS_KEY = "/etc/webhook/certs/tls.key"
    GPU_PREFIXES = "nvidia.com"
    KUBECONFIG = None
    PROVIDER = KubernetesProvider


def jsonresponse():
    """Transforms the response from a view function into a JSON document."""

    def _outer(func):
        @functools.wraps(func)
        def _inner(*args, **kwargs):
            res = func(*args, **kwargs)
            if isinstance(res, BaseModel):
                res = encode_review(res)
            return res, 200, {"content-type": "application/json"}

        return _inner

    return _outer


@jsonresponse()
def validate_pod():
    body = request.get_data()
    if not body:
        raise EmptyRequest("empty body")

    try:
        review = decode_review(body)
    except MalformedEnvelope as err:
        raise MalformedEnvelope(f"failed to decode body: {err}") from err

    try:
        workload = extract_workload(review)
    except MalformedWorkload as err:
        raise MalformedWorkload(f"failed to unmarshal pod: {err}") from err

    namespace = review.request.namespace
    verdict = evaluate(workload, current_app.policy, namespace)
    if not verdict.allowed:
        LOG.info(
            "denied request %s in namespace %s: %s",
            review.request.uid,
            namespace,
            verdict.message,
        )

    return assemble_response(verdict, review.request.uid)


def handle_requesterror(err):
    LOG.warning("rejecting malformed request: %s", err)
    return str(err), 400, {"content-type": "text/plain"}


def handle_applicationerror(err):
    return str(err), 500, {"content-type": "text/plain"}


def health():
    return "OK", 200, {"content-type": "text/plain"}


def create_app(**config) -> Flask:
    """Use an application factory [1] to create the Flask app.

    The resource policy is built here, once, and attached to the app; it is
    read by every request and never modified.

    [1]: https://flask.palletsprojects.com/en/3.0.x/patterns/appfactories/
    """

    app = Flask(__name__)
    app.config.from_object(DEFAULTS)
    app.config.from_prefixed_env("GPU_ADMISSION")
    if config:
        app.config.update(config)

    try:
        app.policy = ResourcePolicy(disallowed_prefixes=app.config["GPU_PREFIXES"])
    except pydantic.ValidationError as err:
        LOG.error("invalid GPU prefix configuration: %s", err)
        sys.exit(1)

    try:
        app.provider = app.config["PROVIDER"](app.config["KUBECONFIG"])
    except ProviderError as err:
        LOG.error("failed to create kubernetes client: %s", err)
        sys.exit(1)

    app.errorhandler(RequestError)(handle_requesterror)
    app.errorhandler(ApplicationError)(handle_applicationerror)
    app.add_url_rule("/healthz", view_func=health)
    app.add_url_rule("/validate", view_func=validate_pod, methods=["POST"])

    return app


def build_ssl_context(certfile, keyfile) -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.load_cert_chain(certfile, keyfile)
    return context


def serve(app: Flask):
    try:
        context = build_ssl_context(app.config["TLS_CERT"], app.config["TLS_KEY"])
    except (OSError, ssl.SSLError) as err:
        LOG.error("failed to load TLS certificate: %s", err)
        sys.exit(1)

    server = make_server(
        app.config["BIND_ADDRESS"],
        int(app.config["PORT"]),
        app,
        threaded=True,
        ssl_context=context,
    )

    LOG.info(
        "starting webhook server on port %s with GPU prefixes: %s",
        app.config["PORT"],
        ",".join(app.policy.disallowed_prefixes),
    )
    server.serve_forever()


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="GPU resource admission webhook")
    p.add_argument("--port", type=int, help="Webhook server port")
    p.add_argument("--tls-cert", help="TLS certificate file")
    p.add_argument("--tls-key", help="TLS key file")
    p.add_argument(
        "--gpu-prefixes",
        help="Comma-separated GPU resource prefixes (e.g., nvidia.com,amd.com)",
    )
    p.add_argument(
        "--kubeconfig",
        help="Path to a kubeconfig. If not specified will use default path, then in-cluster config",
    )
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    overrides = {
        "PORT": args.port,
        "TLS_CERT": args.tls_cert,
        "TLS_KEY": args.tls_key,
        "GPU_PREFIXES": args.gpu_prefixes,
        "KUBECONFIG": args.kubeconfig,
    }

    app = create_app(**{k: v for k, v in overrides.items() if v is not None})
    serve(app)


if __name__ == "__main__":
    main()
