import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from hedgescan.pricing.fees import ConvexFee, ProportionalFee, VenueFees


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class EngineConfig:
    # Fees
    fee_k: float = 0.08
    min_fee: float = 0.5
    venue_b_fee_rate: float = 0.0

    # Signals
    go_threshold: float = 0.02
    hot_threshold: float = 0.05

    # Exits
    exit_threshold: float = 0.98
    min_position_shares: float = 10.0

    # Search
    max_levels: int = 3
    derive_missing_no: bool = True
    signal_on_derived: bool = False

    def venue_fees(self) -> VenueFees:
        return VenueFees(
            venue_a=ConvexFee(k=self.fee_k, min_fee=self.min_fee),
            venue_b=ProportionalFee(rate=self.venue_b_fee_rate),
        )

    def validate(self) -> "EngineConfig":
        for name in (
            "fee_k",
            "min_fee",
            "venue_b_fee_rate",
            "go_threshold",
            "hot_threshold",
            "min_position_shares",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ConfigError(f"{name} must be a non-negative number, got {value}")
        if self.hot_threshold < self.go_threshold:
            raise ConfigError(
                f"hot_threshold ({self.hot_threshold}) must not be below go_threshold ({self.go_threshold})"
            )
        if not math.isfinite(self.exit_threshold) or self.exit_threshold <= 0:
            raise ConfigError(f"exit_threshold must be positive, got {self.exit_threshold}")
        if self.max_levels < 1:
            raise ConfigError(f"max_levels must be at least 1, got {self.max_levels}")
        return self


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid float for {name}: {raw}") from exc


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid int for {name}: {raw}") from exc


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> EngineConfig:
    load_dotenv()

    config = EngineConfig(
        fee_k=_get_float("HEDGESCAN_FEE_K", 0.08),
        min_fee=_get_float("HEDGESCAN_MIN_FEE", 0.5),
        venue_b_fee_rate=_get_float("HEDGESCAN_VENUE_B_FEE_RATE", 0.0),
        go_threshold=_get_float("HEDGESCAN_GO_THRESHOLD", 0.02),
        hot_threshold=_get_float("HEDGESCAN_HOT_THRESHOLD", 0.05),
        exit_threshold=_get_float("HEDGESCAN_EXIT_THRESHOLD", 0.98),
        min_position_shares=_get_float("HEDGESCAN_MIN_POSITION_SHARES", 10.0),
        max_levels=_get_int("HEDGESCAN_MAX_LEVELS", 3),
        derive_missing_no=_get_bool("HEDGESCAN_DERIVE_MISSING_NO", True),
        signal_on_derived=_get_bool("HEDGESCAN_SIGNAL_ON_DERIVED", False),
    )
    return config.validate()
