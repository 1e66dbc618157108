"""Domain errors rendered by the DRF exception handler."""

from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import ValidationError

from shared.domain.exceptions import Conflict, InvalidTransition, NotFound, TransientStoreFailure
from shared.infrastructure.drf import domain_exception_handler


def test_not_found_maps_to_404():
    response = domain_exception_handler(NotFound("Cottage 'x' not found"), {})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.data == {"success": False, "error": "Cottage 'x' not found", "code": "not_found"}


def test_conflict_carries_details():
    response = domain_exception_handler(Conflict("taken", details={"conflicts": []}), {})

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.data["details"] == {"conflicts": []}


def test_invalid_transition_is_a_conflict():
    response = domain_exception_handler(InvalidTransition("booking", "cancelled", "confirmed"), {})

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.data["code"] == "invalid_transition"


def test_transient_failure_is_retryable():
    response = domain_exception_handler(TransientStoreFailure("lock timeout"), {})

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response["Retry-After"] == "1"


def test_other_errors_fall_through_to_drf():
    response = domain_exception_handler(ValidationError({"field": ["bad"]}), {})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
