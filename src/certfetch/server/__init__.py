"""WSGI serving: gunicorn runner and module-level WSGI app."""
