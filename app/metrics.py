from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from flask import Response, request
import time

# API Metrics
api_request_duration_seconds = Histogram(
    "cinelog_api_request_duration_seconds", "API request duration", ["endpoint", "method"]
)

api_requests_total = Counter("cinelog_api_requests_total", "Total API requests", ["endpoint", "method", "status_code"])

# Metadata provider Metrics
tmdb_requests_total = Counter("cinelog_tmdb_requests_total", "Total TMDB requests", ["endpoint", "status"])

tmdb_request_duration_seconds = Histogram(
    "cinelog_tmdb_request_duration_seconds", "TMDB request duration", ["endpoint"]
)

enrichment_lookups_total = Counter(
    "cinelog_enrichment_lookups_total", "Per-title enrichment lookups", ["outcome"]
)

# Analytics Metrics
analytics_duration_seconds = Histogram(
    "cinelog_analytics_duration_seconds", "Time spent computing an analytics view"
)

# Social Metrics
friendship_transitions_total = Counter(
    "cinelog_friendship_transitions_total", "Friendship state transitions", ["action"]
)


def init_metrics(app):
    @app.route("/api/metrics")
    def metrics():
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration = time.time() - getattr(request, "start_time", time.time())
        api_request_duration_seconds.labels(endpoint=request.endpoint or "unknown", method=request.method).observe(
            duration
        )
        api_requests_total.labels(
            endpoint=request.endpoint or "unknown", method=request.method, status_code=response.status_code
        ).inc()
        return response

    app.logger.info("Prometheus metrics initialized at /api/metrics")
