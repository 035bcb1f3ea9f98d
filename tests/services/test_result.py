"""Tests for ServiceResult and ServiceError."""

from __future__ import annotations

import pytest

from envctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_defaults(self) -> None:
        result = ServiceResult(ok=True, op="check")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_carries_error(self) -> None:
        result = ServiceResult(
            ok=False,
            op="resolve",
            error=ServiceError(
                code="RESOLUTION_ERROR", message="boom", detail={"requirement": "x"}
            ),
        )
        assert result.error is not None
        assert result.error.detail["requirement"] == "x"

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="check")
        with pytest.raises(Exception):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip(self) -> None:
        result = ServiceResult(ok=True, op="backends", data={"backends": ["nix"]})
        assert ServiceResult.model_validate_json(result.model_dump_json()) == result
