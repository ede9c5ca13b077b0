"""
WSGI entry point for the Flask CLI and WSGI servers.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi create-library "Central Study Hall" CSH001
"""

from studyhall import create_app

app = create_app()
