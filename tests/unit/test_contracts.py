"""Tests for enumerations, errors and result containers."""

import pandas as pd
import pytest

from relbioav.contracts import (
    ConfigError,
    DatasetType,
    DataShapeError,
    Design,
    FittingError,
    InvalidArgumentError,
    ModelType,
    RelBioavError,
    SimulatedStudy,
    ValidationError,
)


class TestEnumerations:
    """Test strict parsing of design/model/dataset selections."""

    def test_parse_values(self):
        """Known values parse case-insensitively."""
        assert Design.parse("crossover") is Design.CROSSOVER
        assert Design.parse(" Fixed_Sequence ") is Design.FIXED_SEQUENCE
        assert ModelType.parse("MIXED") is ModelType.MIXED
        assert DatasetType.parse("unbalanced") is DatasetType.UNBALANCED

    def test_parse_member_passthrough(self):
        assert Design.parse(Design.PARALLEL) is Design.PARALLEL

    @pytest.mark.parametrize("cls, value", [
        (Design, "latin_square"),
        (ModelType, "random"),
        (DatasetType, "partial"),
    ])
    def test_parse_invalid(self, cls, value):
        """Unknown values raise InvalidArgumentError listing the choices."""
        with pytest.raises(InvalidArgumentError, match="expected one of") as exc:
            cls.parse(value)
        assert exc.value.details["value"] == value

    def test_has_periods(self):
        assert Design.CROSSOVER.has_periods
        assert Design.FIXED_SEQUENCE.has_periods
        assert not Design.PARALLEL.has_periods


class TestErrors:
    """Test error hierarchy."""

    def test_hierarchy(self):
        assert issubclass(InvalidArgumentError, ValidationError)
        assert issubclass(ValidationError, ConfigError)
        assert issubclass(DataShapeError, RelBioavError)
        assert issubclass(FittingError, RelBioavError)

    def test_message_and_details(self):
        error = FittingError("did not converge", {"parameter": "Cmax"})
        assert str(error) == "did not converge"
        assert error.message == "did not converge"
        assert error.details == {"parameter": "Cmax"}

    def test_details_default(self):
        assert RelBioavError("boom").details == {}


class TestSimulatedStudy:
    """Test dataset selection."""

    def test_get(self):
        balanced = pd.DataFrame({"a": [1, 2]})
        unbalanced = pd.DataFrame({"a": [1]})
        study = SimulatedStudy(balanced, unbalanced)

        assert study.get("balanced") is balanced
        assert study.get(DatasetType.UNBALANCED) is unbalanced
        with pytest.raises(InvalidArgumentError):
            study.get("both")
