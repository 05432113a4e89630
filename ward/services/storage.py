"""Transaction and storage-failure helpers shared by the ward services."""
import contextlib
import logging

from django.conf import settings
from django.db import DatabaseError, transaction

from ward.exceptions import StorageError

logger = logging.getLogger(__name__)


def atomic_workflows() -> bool:
    return getattr(settings, 'WARD_ATOMIC_WORKFLOWS', True)


def workflow_atomic(atomic: bool):
    """``transaction.atomic()`` when multi-row workflows are wrapped, else a no-op."""
    return transaction.atomic() if atomic else contextlib.nullcontext()


@contextlib.contextmanager
def storage_errors(action: str):
    """Re-raise backend failures as :class:`StorageError` with one readable message."""
    try:
        yield
    except DatabaseError as exc:
        logger.exception('%s failed', action)
        raise StorageError(f'{action} failed: {exc}') from exc
