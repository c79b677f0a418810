"""taskpad: a local to-do list core (task store, filters, persistence) with a console front end."""

__version__ = "0.1.0"
