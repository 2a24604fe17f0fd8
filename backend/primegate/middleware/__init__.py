# Middleware package init
"""
Primegate Backend: Middleware Package
=====================================

Middleware Chain (order matters!):
    Request → [CORS] → [Access Log] → [Body Limit] → Route Handler

    1. CORS outermost: every response, a 413 included, carries the
       Access-Control-* headers
    2. Access Log: correlation id plus one line per request, rejections too
    3. Body Limit: oversized uploads are refused before a route reads them
"""
