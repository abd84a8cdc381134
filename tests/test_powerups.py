"""Tests for the power-up catalogue."""

from dataclasses import replace

import numpy as np
import pytest

from power_snake.exceptions import RegistryError, UnknownPowerUpError
from power_snake.powerups import (
    REGISTRY,
    ActivePowerUp,
    PowerUpKind,
    SpawnedPowerUp,
    parse_kind,
    redirect_targets,
    resolve_kind,
    validate_registry,
)


class TestRegistryContents:
    def test_every_kind_registered(self):
        assert set(REGISTRY) == set(PowerUpKind)

    @pytest.mark.parametrize(
        ("kind", "duration"),
        [
            (PowerUpKind.GHOST_TIME, 8000),
            (PowerUpKind.MAGNET_HEAD, 10000),
            (PowerUpKind.DOUBLE_SCORE, 8000),
            (PowerUpKind.SPEED_BOOST, 6000),
            (PowerUpKind.SNAIL_TIME, 12000),
            (PowerUpKind.BLACKOUT_MODE, 8000),
            (PowerUpKind.GOLDEN_APPLE, 0),
            (PowerUpKind.MYSTERY_BOX, 0),
        ],
    )
    def test_durations(self, kind, duration):
        assert REGISTRY[kind].duration_ms == duration

    def test_instant_kinds(self):
        instant = {k for k, spec in REGISTRY.items() if spec.is_instant}
        assert instant == {PowerUpKind.GOLDEN_APPLE, PowerUpKind.MYSTERY_BOX}

    def test_speed_multipliers(self):
        assert REGISTRY[PowerUpKind.SPEED_BOOST].speed_multiplier == 0.5
        assert REGISTRY[PowerUpKind.SNAIL_TIME].speed_multiplier == 2.5
        assert REGISTRY[PowerUpKind.GHOST_TIME].speed_multiplier == 1.0

    def test_score_multipliers(self):
        assert REGISTRY[PowerUpKind.DOUBLE_SCORE].score_multiplier == 2
        assert REGISTRY[PowerUpKind.SNAIL_TIME].score_multiplier == 2
        assert REGISTRY[PowerUpKind.MAGNET_HEAD].score_multiplier == 1

    def test_golden_apple_bonus(self):
        assert REGISTRY[PowerUpKind.GOLDEN_APPLE].bonus_points == 5

    def test_expiry_messages(self):
        assert REGISTRY[PowerUpKind.GHOST_TIME].expiry_message == "GhostTime expired!"
        assert REGISTRY[PowerUpKind.BLACKOUT_MODE].expiry_message == "Vision restored!"

    def test_weights_in_range(self):
        for spec in REGISTRY.values():
            assert 0 <= spec.spawn_weight <= 100


class TestValidateRegistry:
    def test_shipped_registry_is_valid(self):
        validate_registry(REGISTRY)

    def test_missing_kind(self):
        broken = dict(REGISTRY)
        del broken[PowerUpKind.GHOST_TIME]
        with pytest.raises(RegistryError, match="ghostTime"):
            validate_registry(broken)

    def test_weight_out_of_range(self):
        broken = dict(REGISTRY)
        broken[PowerUpKind.DOUBLE_SCORE] = replace(
            REGISTRY[PowerUpKind.DOUBLE_SCORE], spawn_weight=101,
        )
        with pytest.raises(RegistryError, match="spawn_weight"):
            validate_registry(broken)

    def test_negative_duration(self):
        broken = dict(REGISTRY)
        broken[PowerUpKind.SPEED_BOOST] = replace(
            REGISTRY[PowerUpKind.SPEED_BOOST], duration_ms=-1,
        )
        with pytest.raises(RegistryError, match="duration_ms"):
            validate_registry(broken)

    def test_timed_redirect_rejected(self):
        broken = dict(REGISTRY)
        broken[PowerUpKind.MYSTERY_BOX] = replace(
            REGISTRY[PowerUpKind.MYSTERY_BOX], duration_ms=1000,
        )
        with pytest.raises(RegistryError, match="instant"):
            validate_registry(broken)


class TestParseKind:
    def test_by_value(self):
        assert parse_kind("ghostTime") is PowerUpKind.GHOST_TIME

    def test_passthrough(self):
        assert parse_kind(PowerUpKind.MAGNET_HEAD) is PowerUpKind.MAGNET_HEAD

    def test_unknown(self):
        with pytest.raises(UnknownPowerUpError, match="freeze"):
            parse_kind("freeze")

    def test_unknown_is_value_error(self):
        with pytest.raises(ValueError):
            parse_kind("GHOST_TIME")


class TestResolveKind:
    def test_concrete_kind_unchanged(self):
        rng = np.random.default_rng(0)
        assert resolve_kind(PowerUpKind.DOUBLE_SCORE, rng) is PowerUpKind.DOUBLE_SCORE

    def test_mystery_box_never_resolves_to_itself(self):
        rng = np.random.default_rng(0)
        seen = {resolve_kind(PowerUpKind.MYSTERY_BOX, rng) for _ in range(500)}
        assert PowerUpKind.MYSTERY_BOX not in seen
        assert seen == set(redirect_targets())

    def test_redirect_targets(self):
        targets = redirect_targets()
        assert len(targets) == 7
        assert PowerUpKind.MYSTERY_BOX not in targets


class TestPowerUpRecords:
    def test_spawned_to_dict(self):
        pu = SpawnedPowerUp(
            cell=(40, 60), kind=PowerUpKind.GOLDEN_APPLE,
            end_time=100.0, is_instant=True,
        )
        assert pu.to_dict() == {
            "x": 40, "y": 60, "type": "goldenApple",
            "endTime": 100.0, "isInstant": True,
        }

    def test_active_remaining(self):
        active = ActivePowerUp(
            kind=PowerUpKind.GHOST_TIME, start_time=0.0, end_time=8000.0,
        )
        assert active.remaining_ms(3000.0) == 5000.0
        assert active.remaining_ms(9000.0) == 0.0
        assert active.to_dict()["type"] == "ghostTime"
