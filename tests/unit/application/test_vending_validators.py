"""Unit tests for token vending validators (pure functions)."""

import pytest

from tokenvend.application.use_cases.validators import (
    validate_disco,
    validate_key_material,
    validate_last_token,
    validate_meter_number,
    validate_pagination,
    validate_reason,
    validate_reference,
    validate_token_value,
    validate_units,
)
from tokenvend.domain.errors import ValidationError


class TestValidateTokenValue:
    """Token values are digits and hyphens with 16..46 digits."""

    def test_grouped_token_is_accepted(self) -> None:
        assert validate_token_value(" 1234-5678-9012-3456-7890 ") == (
            "1234-5678-9012-3456-7890"
        )

    def test_sixteen_digits_is_minimum(self) -> None:
        validate_token_value("1" * 16)
        with pytest.raises(ValidationError, match="got 15"):
            validate_token_value("1" * 15)

    def test_forty_six_digits_is_maximum(self) -> None:
        validate_token_value("1" * 46)
        with pytest.raises(ValidationError, match="got 47"):
            validate_token_value("1" * 47)

    def test_hyphens_do_not_count_as_digits(self) -> None:
        with pytest.raises(ValidationError):
            validate_token_value("1111-1111-1111-111")

    @pytest.mark.parametrize("value", ["", "1234 5678 9012 3456", "1234abcd56789012"])
    def test_other_characters_rejected(self, value: str) -> None:
        with pytest.raises(ValidationError, match="only digits and hyphens"):
            validate_token_value(value)


class TestValidateMeterAndLastToken:
    def test_meter_number_is_stripped(self) -> None:
        assert validate_meter_number(" 45071234567 ") == "45071234567"

    @pytest.mark.parametrize("meter", ["12345", "1" * 21, "4507-1234", "abc123456"])
    def test_bad_meter_numbers(self, meter: str) -> None:
        with pytest.raises(ValidationError, match="Meter number"):
            validate_meter_number(meter)

    def test_last_token_ignores_hyphens(self) -> None:
        assert validate_last_token("1234-5678-9012") == "123456789012"

    def test_last_token_too_short(self) -> None:
        with pytest.raises(ValidationError, match="Last token"):
            validate_last_token("1234-567")


class TestValidateMisc:
    def test_disco_is_normalized(self) -> None:
        assert validate_disco(" ikedc ", ["IKEDC", "AEDC"]) == "IKEDC"

    def test_unknown_disco(self) -> None:
        with pytest.raises(ValidationError, match="Unknown disco"):
            validate_disco("LAGOS", ["IKEDC"])

    @pytest.mark.parametrize("units", [0, -5, 10_001])
    def test_units_out_of_range(self, units: int) -> None:
        with pytest.raises(ValidationError):
            validate_units(units, 10_000)

    def test_key_material_lists_missing_fields(self) -> None:
        with pytest.raises(ValidationError, match="missing MTK2, RTK1"):
            validate_key_material(
                {
                    "KRN": "1",
                    "SGC": "600675",
                    "TI": "01",
                    "MSN": "45071234567",
                    "MTK1": "AB",
                    "MTK2": "",
                    "RTK1": None,
                    "RTK2": "CD",
                }
            )

    def test_blank_reference_and_reason(self) -> None:
        with pytest.raises(ValidationError):
            validate_reference("   ")
        with pytest.raises(ValidationError):
            validate_reason(None)

    def test_pagination_bounds(self) -> None:
        validate_pagination(1, 100)
        with pytest.raises(ValidationError):
            validate_pagination(0, 20)
        with pytest.raises(ValidationError):
            validate_pagination(1, 101)
