"""
Prometheus metrics blueprint.

Exposes /metrics with per-route request metrics and a counter of rendered
quote PDFs. Restrict access to the monitoring network in production.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share samples through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _register = {'registry': None}
else:
    registry = REGISTRY
    _register = {'registry': registry}

# Requests are labelled by URL rule so ids in the path stay out of the labels
http_requests_total = Counter(
    'kalkyle_http_requests_total',
    'HTTP requests by route and status',
    ['method', 'route', 'http_status'],
    **_register
)

http_request_duration_seconds = Histogram(
    'kalkyle_http_request_duration_seconds',
    'HTTP request duration by route',
    ['method', 'route'],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    **_register
)

http_requests_in_flight = Gauge(
    'kalkyle_http_requests_in_flight',
    'Requests being handled right now',
    **_register
)

quote_pdfs_rendered_total = Counter(
    'kalkyle_quote_pdfs_rendered_total',
    'Quote PDFs rendered, by detailed/summary mode',
    ['mode'],
    **_register
)


def _route_label():
    return request.url_rule.rule if request.url_rule else 'unmatched'


def setup_metrics_instrumentation(app):
    """Time every request and count it by route and status."""

    @app.before_request
    def start_request_timer():
        g.request_started = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request(response):
        started = g.get('request_started')
        if started is not None:
            route = _route_label()
            http_request_duration_seconds.labels(method=request.method, route=route).observe(
                time.perf_counter() - started
            )
            http_requests_total.labels(
                method=request.method, route=route, http_status=response.status_code
            ).inc()
        return response

    @app.teardown_request
    def leave_request(exc):
        if g.pop('request_started', None) is not None:
            http_requests_in_flight.dec()


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus exposition (text format). Not authenticated."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
