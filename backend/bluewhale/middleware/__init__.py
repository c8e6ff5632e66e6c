"""
Blue Whale Backend: Middleware Package
========================================

Cross-cutting concerns applied to every request.

Chain (outermost first, as registered in main.create_app):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    - Rate limiting rejects floods before any other work happens
    - The request ID is set before the access log line is written
    - X-Request-ID is added to every response on the way out, 429s excepted
"""
