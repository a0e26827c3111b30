"""HTTP routes.

Each module exposes ``create_router`` taking getters for the shared objects it
needs, so the app and the tests can wire their own instances.
"""
