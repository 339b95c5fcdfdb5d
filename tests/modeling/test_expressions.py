"""Tests for variable arithmetic and affine expressions."""

import pytest

from src.core.modeling import AffineExpression, BoundState, Model


@pytest.fixture
def xy():
    model = Model()
    return model.add_variable("x"), model.add_variable("y")


class TestArithmetic:
    """Test operators on variables and expressions."""

    def test_linear_combination(self, xy):
        x, y = xy
        expr = 2 * x + 3 * y - 1

        assert expr.coefficient(x) == 2.0
        assert expr.coefficient(y) == 3.0
        assert expr.constant == -1.0

    def test_like_terms_combined(self, xy):
        x, _ = xy
        expr = x + x + 0.5 * x
        assert expr.coefficient(x) == 2.5

    def test_cancellation_drops_term(self, xy):
        x, y = xy
        expr = x + y - x
        assert expr.variables() == [y]

    def test_right_hand_operators(self, xy):
        x, _ = xy
        expr = 5 - x
        assert expr.coefficient(x) == -1.0
        assert expr.constant == 5.0

    def test_division_and_negation(self, xy):
        x, y = xy
        expr = -(x + 4 * y) / 2
        assert expr.coefficient(x) == -0.5
        assert expr.coefficient(y) == -2.0

    def test_sum_builtin(self, xy):
        x, y = xy
        expr = sum([x, y, 1])
        assert expr == AffineExpression({x: 1.0, y: 1.0}, 1.0)

    def test_product_of_variables_rejected(self, xy):
        x, y = xy
        with pytest.raises(TypeError):
            x * y

    def test_coerce_rejects_strings(self):
        with pytest.raises(TypeError):
            AffineExpression.coerce("x")


class TestExpressionState:
    """Test copies, in-place changes and display."""

    def test_copy_is_independent(self, xy):
        x, _ = xy
        expr = 2 * x
        clone = expr.copy()
        clone.set_coefficient(x, 7.0)
        assert expr.coefficient(x) == 2.0

    def test_set_zero_coefficient_removes_term(self, xy):
        x, y = xy
        expr = x + y
        expr.set_coefficient(x, 0)
        assert expr.variables() == [y]

    def test_repr(self, xy):
        x, y = xy
        assert repr(2 * x - y + 3) == "2 x - 1 y + 3"

    def test_variables_hash_by_identity(self):
        model = Model()
        a = model.add_variable("same")
        b = model.add_variable("same")
        assert len({a, b}) == 2


class TestBoundState:
    """Test the tagged bound state of new variables."""

    @pytest.mark.parametrize(
        "kwargs, expected",
        [
            ({}, BoundState.UNBOUNDED),
            ({"lower": 0}, BoundState.LOWER_ONLY),
            ({"upper": 1}, BoundState.UPPER_ONLY),
            ({"lower": 0, "upper": 1}, BoundState.BOUNDED),
            ({"fixed": 2}, BoundState.FIXED),
        ],
    )
    def test_initial_state(self, kwargs, expected):
        var = Model().add_variable("v", **kwargs)
        assert var.bound_state is expected
