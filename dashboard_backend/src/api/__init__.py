"""
Dashboard Backend package.

Goal tracking and calendar/to-do synchronization behind a FastAPI service.
The application instance lives in ``src.api.main``.
"""
