"""Session authentication for the server-rendered UI.

- Login form POSTs and the logout path are handled by the firewall middleware.
- Controllers only read what the firewall left in the session.
- Sessions are signed cookies (Starlette SessionMiddleware / itsdangerous).
"""
