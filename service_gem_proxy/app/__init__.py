"""
Gem Proxy Service package.

A caching reverse proxy for a gem registry. Gem archives are fetched from
the upstream once and then served from disk forever; spec index files are
re-fetched once they are older than the freshness window and can be purged
with a DELETE request.

Structure:
- app.main: FastAPI app, catch-all proxy route and lifecycle wiring.
- app.caching: Path classification, cache policy and the file store.
- app.adapters: HTTP client for the upstream registry.
- app.domain: Fetch orchestrator, error boundary and HTML views.

Module import must not perform network or filesystem IO.
"""
