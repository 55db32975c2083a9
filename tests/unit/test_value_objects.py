"""Unit tests for lab value objects."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime
from uuid import uuid4

from src.water_lab.domain.value_objects.notification import Notification, NotificationType
from src.water_lab.domain.value_objects.parameter_row import ParameterRow
from src.water_lab.domain.value_objects.parameter_types import ParameterType
from src.water_lab.domain.value_objects.safety_verdict import RowStatus, SafetyLevel, SafetyVerdict
from src.water_lab.domain.value_objects.water_parameters import BASELINE_PARAMETERS, WaterParameters


class TestWaterParameters:
    """Test cases for WaterParameters value object."""

    def test_defaults_are_missing(self):
        """Test a new sample has nothing measured."""
        params = WaterParameters()

        assert len(params.missing_parameters()) == 7

    def test_resolved_fills_only_missing_fields(self):
        """Test baseline substitution keeps measured values."""
        params = WaterParameters(ph_level=9.1, heavy_metals=True)

        resolved = params.resolved()

        assert resolved.ph_level == 9.1
        assert resolved.heavy_metals is True
        assert resolved.bacteria_count == 0
        assert resolved.chlorine == 0.2
        assert resolved.total_dissolved_solids == 150
        assert resolved.missing_parameters() == []
        assert params.ph_level == 9.1
        assert params.bacteria_count is None

    def test_measured_baseline_differs_from_missing(self):
        """Test 'not measured' and 'measured at baseline' stay distinguishable."""
        assert WaterParameters() != BASELINE_PARAMETERS
        assert WaterParameters().resolved() == BASELINE_PARAMETERS

    def test_immutable(self):
        """Test WaterParameters is frozen."""
        params = WaterParameters(ph_level=7.0)

        with pytest.raises(FrozenInstanceError):
            params.ph_level = 8.0


class TestSafetyVerdict:
    """Test cases for SafetyVerdict value object."""

    def test_valid_verdict(self):
        """Test creating a verdict."""
        verdict = SafetyVerdict(safety_level=SafetyLevel.WARNING, score=65, issues=("abnormal pH",))

        assert verdict.row_status == RowStatus.WARNING

    @pytest.mark.parametrize("score", [-1, 101])
    def test_score_out_of_range(self, score):
        """Test scores outside 0-100 are rejected."""
        with pytest.raises(ValueError, match="between 0 and 100"):
            SafetyVerdict(safety_level=SafetyLevel.DANGER, score=score)

    def test_score_must_be_integer(self):
        """Test fractional scores are rejected."""
        with pytest.raises(ValueError, match="integer"):
            SafetyVerdict(safety_level=SafetyLevel.SAFE, score=90.5)

    def test_equality_ignores_computed_at(self):
        """Test verdicts compare by content."""
        first = SafetyVerdict(SafetyLevel.SAFE, 100, (), datetime(2026, 1, 1))
        second = SafetyVerdict(SafetyLevel.SAFE, 100, (), datetime(2026, 2, 1))

        assert first == second

    @pytest.mark.parametrize("raw,status", [
        ("aman", RowStatus.AMAN),
        ("safe", RowStatus.AMAN),
        ("warning", RowStatus.WARNING),
        ("BAHAYA", RowStatus.BAHAYA),
        (" danger ", RowStatus.BAHAYA),
        ("1", RowStatus.AMAN),
        ("2", RowStatus.WARNING),
        ("3", RowStatus.BAHAYA),
    ])
    def test_row_status_parse_accepts_legacy_spellings(self, raw, status):
        """Test stored status parsing."""
        assert RowStatus.parse(raw) == status

    def test_row_status_parse_rejects_unknown(self):
        """Test unknown statuses are rejected."""
        with pytest.raises(ValueError, match="Unknown row status"):
            RowStatus.parse("ok")

    def test_level_status_mapping(self):
        """Test level and row status translate both ways."""
        for level in SafetyLevel:
            assert level.to_row_status().to_safety_level() == level


class TestParameterRow:
    """Test cases for ParameterRow value object."""

    def make_row(self, **overrides):
        data = dict(
            report_id=uuid4(),
            parameter=ParameterType.PH_LEVEL,
            value="7.2",
            unit="pH",
            status=RowStatus.AMAN,
            tested_at=datetime(2026, 10, 1, 8, 0),
            lab_officer=uuid4(),
            puskesmas_id=uuid4()
        )
        data.update(overrides)
        return ParameterRow(**data)

    def test_value_must_be_string(self):
        """Test numeric values are rejected."""
        with pytest.raises(ValueError, match="string-encoded"):
            self.make_row(value=7.2)

    def test_parameter_must_be_enum(self):
        """Test raw parameter names are rejected."""
        with pytest.raises(ValueError, match="ParameterType"):
            self.make_row(parameter="ph_level")

    def test_is_overall(self):
        """Test sentinel detection."""
        assert self.make_row(parameter=ParameterType.OVERALL_SAFETY).is_overall
        assert not self.make_row().is_overall


class TestParameterType:
    """Test cases for ParameterType enumeration."""

    def test_measured_excludes_overall(self):
        """Test the seven measured parameters."""
        measured = ParameterType.measured()

        assert len(measured) == 7
        assert ParameterType.OVERALL_SAFETY not in measured

    def test_boolean_parameters(self):
        """Test boolean flag detection."""
        assert ParameterType.HEAVY_METALS.is_boolean
        assert ParameterType.E_COLI_PRESENT.is_boolean
        assert not ParameterType.CHLORINE.is_boolean


class TestNotification:
    """Test cases for Notification value object."""

    def test_payload(self):
        """Test the delivery payload shape."""
        user_id = uuid4()
        notification = Notification(
            user_id=user_id,
            puskesmas_id=None,
            title="Hasil Analisis: Air AMAN",
            message="Aman",
            type=NotificationType.INFO,
            created_at=datetime(2026, 10, 1, 8, 0)
        )

        payload = notification.to_payload()

        assert payload["user_id"] == str(user_id)
        assert payload["puskesmas_id"] is None
        assert payload["type"] == "info"
        assert payload["is_read"] is False

    def test_empty_title_rejected(self):
        """Test notifications need a title."""
        with pytest.raises(ValueError, match="title"):
            Notification(uuid4(), None, " ", "message", NotificationType.INFO, datetime.utcnow())
