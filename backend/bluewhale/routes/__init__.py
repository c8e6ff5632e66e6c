# Routes package init
"""
Blue Whale Backend: API Routes Package
========================================

Route Inventory:
    - auth.py:           /auth/register, /auth/login, /auth/logout, /auth/me
    - users.py:          /users search, profiles, follow graph, a user's posts
    - content.py:        /content feeds, search, CRUD, likes, bookmarks, comments,
                         and /uploads/{path} for stored PDFs
    - notifications.py:  /notifications inbox
    - health.py:         / and /health

Routes stay thin: parse the request, call a service, set headers such as
X-Total-Count. Business rules and their errors live in the services.
"""
