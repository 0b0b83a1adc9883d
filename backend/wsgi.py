# Overview: WSGI entrypoint (FLASK_APP=wsgi.py for the CLI, or gunicorn wsgi:app).

from stockgrid import create_app

app = create_app()
