# Middleware package init
"""
TogetherLog Backend - Middleware Package
=========================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and any error body carry
    the same id. Responses unwind in reverse order.
"""
