import os
from dataclasses import dataclass, fields


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


@dataclass(frozen=True)
class Ruleset:
    num_players: int = 4
    colors: int = 4
    values: int = 13
    copies_per_tiletype: int = 2
    num_jokers: int = 2
    initial_hand_size: int = 14
    initial_meld_min_points: int = 30
    min_set_length: int = 3
    max_group_length: int = 4
    max_run_length: int = 13
    # Reject runs whose tiles do not all carry the first tile's raw value.
    literal_run_check: bool = False

    def deck_size(self) -> int:
        normal_tiles = self.colors * self.values * self.copies_per_tiletype
        return normal_tiles + self.num_jokers

    @classmethod
    def from_env(cls, prefix: str = "RUMMIKUB_") -> "Ruleset":
        """Build a ruleset, overriding defaults from ``<prefix><FIELD>`` variables."""
        overrides = {}
        for f in fields(cls):
            key = prefix + f.name.upper()
            if key not in os.environ:
                continue
            if f.type in (bool, "bool"):
                overrides[f.name] = _env_bool(key, f.default)
            else:
                overrides[f.name] = _env_int(key, f.default)
        return cls(**overrides)


DEFAULT_RULESET = Ruleset()
