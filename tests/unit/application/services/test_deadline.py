"""Tests for the overall time budget."""

import pytest

from vinylstats.application.services import Deadline
from vinylstats.domain.exceptions import ErrorKind, TransientCatalogError


class TestDeadline:
    """Test Deadline arithmetic."""

    def test_remaining_never_negative(self) -> None:
        """Test remaining() bottoms out at zero."""
        now = [0.0]
        deadline = Deadline.after(2, clock=lambda: now[0])
        assert deadline.remaining() == 2
        now[0] = 5
        assert deadline.remaining() == 0
        assert deadline.expired

    def test_check_raises_transient(self) -> None:
        """Test an exhausted budget is a transient failure."""
        deadline = Deadline(expires_at=0, clock=lambda: 1.0)
        with pytest.raises(TransientCatalogError) as exc_info:
            deadline.check("page 3")
        assert exc_info.value.kind is ErrorKind.TRANSIENT
        assert "page 3" in exc_info.value.message

    @pytest.mark.parametrize(("timeout", "expected"), [(None, 4.0), (10.0, 4.0), (1.5, 1.5)])
    def test_clamp(self, timeout: float | None, expected: float) -> None:
        """Test per-call timeouts never exceed the remaining budget."""
        deadline = Deadline.after(4, clock=lambda: 0.0)
        assert deadline.clamp(timeout) == expected
