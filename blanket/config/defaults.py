"""Default temperature color ranges, in °F, coldest first."""

from blanket.config.schema import RangeConfig

DEFAULT_RANGES: list[RangeConfig] = [
    RangeConfig(lower_bound=-100.0, upper_bound=20.0, color="#3b1f6b"),
    RangeConfig(lower_bound=20.0, upper_bound=32.0, color="#2b4c9b"),
    RangeConfig(lower_bound=32.0, upper_bound=45.0, color="#4a90d9"),
    RangeConfig(lower_bound=45.0, upper_bound=55.0, color="#6cc3b5"),
    RangeConfig(lower_bound=55.0, upper_bound=65.0, color="#8fd16a"),
    RangeConfig(lower_bound=65.0, upper_bound=75.0, color="#f2d64b"),
    RangeConfig(lower_bound=75.0, upper_bound=85.0, color="#f29b38"),
    RangeConfig(lower_bound=85.0, upper_bound=95.0, color="#e4572e"),
    RangeConfig(lower_bound=95.0, upper_bound=150.0, color="#a4161a"),
]
