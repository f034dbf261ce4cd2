import pytest


@pytest.fixture(autouse=True)
def _django_runner_db_guard_for_simple_testcases(request, django_db_blocker):
    """Match Django's own test runner for DB-less SimpleTestCase classes.

    Django's runner only guards new connections/cursors in SimpleTestCase, while
    pytest-django also blocks ``ensure_connection`` on an already-open connection
    (e.g. the in-memory SQLite one left by an earlier TestCase). Channels'
    ``database_sync_to_async`` calls ``close_old_connections`` which touches that
    connection, so defer to Django's guard here.
    """
    from django.test import SimpleTestCase, TransactionTestCase

    cls = getattr(request, "cls", None)
    if cls is None or not issubclass(cls, SimpleTestCase) or issubclass(cls, TransactionTestCase):
        yield
        return
    with django_db_blocker.unblock():
        yield
