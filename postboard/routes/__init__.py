"""
Postboard Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:     POST /auth/register, POST /auth/login, GET /auth/me
    - posts.py:    GET/POST /posts, GET/PATCH/DELETE /posts/{id},
                   GET /posts/tags, GET /tags
    - uploads.py:  POST /upload, GET /uploads/{filename}
    - health.py:   GET /health

Routes stay thin: pull data out of the request, call a service, return the
service's result. Errors are raised as typed exceptions and rendered by the
global handlers in main.py.
"""
