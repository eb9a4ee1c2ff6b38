"""
API Blueprints Package

All HTTP route handlers for the application, organized by resource.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

- customers.py  : Customers, customer searches, Excel import/export
- todos.py      : Follow-up todos and their audit log
- activities.py : Follow-up records (calls, visits, orders, samples)
- reminders.py  : Reminders, reminder sweep, per-user reminder config
- users.py      : Sales staff, home screen and detail cards
- tags.py       : Tag dimensions and tags
- dashboard.py  : Dashboard follow-up search
- pages.py      : Static frontend and the /api not-found fallback
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
