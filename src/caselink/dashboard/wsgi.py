"""WSGI entry point: ``gunicorn caselink.dashboard.wsgi:app``."""

from caselink.dashboard import create_app
from caselink.state import configure_logging

configure_logging()
app = create_app()
