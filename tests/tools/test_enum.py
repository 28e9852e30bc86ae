import pytest
from enum import Enum
from stackscope.tools.enum import EnumManipulator


class Order(Enum):
    TIME_ORDER = "time"
    LEFT_HEAVY = "left_heavy"
    NUMBERED = 3


@pytest.fixture
def manipulator():
    return EnumManipulator(Order)


def test_fetch_keys(manipulator):
    assert manipulator.fetch_keys() == ["TIME_ORDER", "LEFT_HEAVY", "NUMBERED"]


def test_fetch_enum_by_name(manipulator):
    assert manipulator.fetch_enum("time_order") is Order.TIME_ORDER
    assert manipulator.fetch_enum("Time-Order") is Order.TIME_ORDER
    assert manipulator.fetch_enum("numbered") is Order.NUMBERED


def test_fetch_enum_by_value(manipulator):
    assert manipulator.fetch_enum("TIME") is Order.TIME_ORDER
    assert manipulator.fetch_enum("left heavy") is Order.LEFT_HEAVY


def test_fetch_enum_missing(manipulator):
    assert manipulator.fetch_enum("3") is None
    assert manipulator.fetch_enum("right_heavy") is None


def test_require(manipulator):
    assert manipulator.require("time") is Order.TIME_ORDER
    with pytest.raises(ValueError, match="time_order, left_heavy, numbered"):
        manipulator.require("sideways")
