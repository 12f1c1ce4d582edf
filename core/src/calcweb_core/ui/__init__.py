"""Server-rendered pages.

- Jinja2 templates served by the FastAPI app
- plain HTML forms + redirects
- flash messages carried in the signed session cookie
"""
