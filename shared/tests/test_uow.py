"""DjangoUnitOfWork transaction boundaries."""

from __future__ import annotations

from unittest import mock

import pytest
from django.db import DatabaseError, connection

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import TransientStoreFailure


@pytest.mark.django_db(transaction=True)
def test_failed_timeout_setup_leaves_no_open_transaction():
    uow = DjangoUnitOfWork()

    with mock.patch.object(uow, "_apply_timeouts", side_effect=DatabaseError("lock_timeout rejected")):
        with pytest.raises(TransientStoreFailure):
            with uow:
                pass

    assert not connection.in_atomic_block


@pytest.mark.django_db(transaction=True)
def test_events_are_dropped_on_rollback():
    uow = DjangoUnitOfWork(bus=mock.Mock())

    with pytest.raises(RuntimeError):
        with uow:
            uow._events.append(mock.Mock())
            raise RuntimeError("boom")

    assert uow._events == []
    assert not connection.in_atomic_block
