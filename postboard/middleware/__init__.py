"""
Postboard Backend — Middleware Package
========================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

Request ID runs first so the access log line and every error body carry
the same correlation id.
"""
