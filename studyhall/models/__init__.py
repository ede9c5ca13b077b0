"""
Study-Hall Admissions — SQLAlchemy models package.

The shared ``db`` handle lives here so every model module and service can
``from studyhall.models import db`` without touching the application factory.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
