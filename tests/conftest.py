"""
Shared pytest fixtures for fluid_animations tests.
"""
import logging
import sys

import pytest

from fluid_animations.animation.spring import SpringParameters


class FakeClock:
    """Manually advanced clock for driver tests."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """A FakeClock starting at t=100s."""
    return FakeClock()


@pytest.fixture
def smooth_spring():
    """Critically damped spring (bounce 0)."""
    return SpringParameters.from_duration_and_bounce(0.5, 0.0)


@pytest.fixture
def bouncy_spring():
    """Under-damped spring (bounce 0.5)."""
    return SpringParameters.from_duration_and_bounce(0.5, 0.5)


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers/level after setup_logging() tests."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture(scope='session')
def qt_core_app():
    """Create a QCoreApplication for QTimer-based tests (no display needed)."""
    QtCore = pytest.importorskip("PySide6.QtCore")
    app = QtCore.QCoreApplication.instance()
    if app is None:
        app = QtCore.QCoreApplication(sys.argv)
    yield app
    # Don't quit - causes issues with pytest
