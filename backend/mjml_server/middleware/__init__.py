# Middleware package init
"""
MJML Server — Middleware Package
==================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Body Limit] → [GZip] → Route Handler

    1. Request ID first: every later log line can carry it
    2. Logging: sees the final status, including 413s from the body limit
    3. Body Limit: rejects oversized payloads before they are read
    4. GZip: compiled HTML compresses well and can be large
"""
