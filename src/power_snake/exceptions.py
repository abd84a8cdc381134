"""Exception types raised by the game core."""

from __future__ import annotations


class PowerSnakeError(Exception):
    """Base class for game core errors."""


class BoardFullError(PowerSnakeError):
    """No free cell is left to place a collectible on."""


class RegistryError(PowerSnakeError):
    """The power-up catalogue is inconsistent."""


class UnknownPowerUpError(PowerSnakeError, ValueError):
    """A power-up kind outside the enumerated set was requested."""
