"""
Fallback Snapshot Store - Static demographic snapshots per entity.

Approximate World Bank 2023 figures, used when live data for an
entity is too thin. Read-only after construction.
"""

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from risk_scoring.types import IndicatorSet


class FallbackSnapshotStore:
    """
    Immutable ISO code -> IndicatorSet mapping.

    Lookups are case-insensitive; unknown entities give None.
    """

    def __init__(self, snapshots: Mapping[str, IndicatorSet]) -> None:
        self._snapshots = MappingProxyType({k.upper(): v for k, v in snapshots.items()})

    def lookup(self, iso2: str) -> Optional[IndicatorSet]:
        return self._snapshots.get(iso2.upper())

    @property
    def snapshots(self) -> Mapping[str, IndicatorSet]:
        return self._snapshots

    def __contains__(self, iso2: object) -> bool:
        return isinstance(iso2, str) and iso2.upper() in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[str]:
        return iter(self._snapshots)


def _snapshot(
    population: float,
    pop_growth: float,
    fertility_rate: float,
    life_expectancy: float,
    youth_pct: float,
    elderly_pct: float,
    urban_pct: float,
    youth_unemployment: float,
    density: float,
    net_migration: float,
) -> IndicatorSet:
    return IndicatorSet(
        population=population,
        pop_growth=pop_growth,
        fertility_rate=fertility_rate,
        life_expectancy=life_expectancy,
        youth_pct=youth_pct,
        elderly_pct=elderly_pct,
        urban_pct=urban_pct,
        youth_unemployment=youth_unemployment,
        density=density,
        net_migration=net_migration,
    )


# population, growth %, fertility, life expectancy, 0-14 %, 65+ %,
# urban %, youth unemployment %, density per km², net migration
DEFAULT_SNAPSHOTS: Mapping[str, IndicatorSet] = MappingProxyType({
    "NG": _snapshot(223_800_000, 2.4, 5.1, 53.9, 43.3, 2.7, 54.3, 19.6, 242, -60_000),
    "ET": _snapshot(126_500_000, 2.5, 4.1, 66.6, 39.8, 3.5, 23.2, 5.3, 115, -30_000),
    "EG": _snapshot(109_300_000, 1.7, 2.9, 72.4, 33.8, 5.6, 42.8, 26.5, 109, -38_000),
    "CD": _snapshot(102_300_000, 3.2, 5.9, 60.7, 46.3, 2.9, 46.8, 8.7, 44, -22_000),
    "ZA": _snapshot(60_400_000, 0.8, 2.3, 65.3, 28.2, 5.8, 68.4, 59.6, 50, 1_000_000),
    "KE": _snapshot(55_100_000, 1.9, 3.3, 62.1, 38.0, 2.9, 29.0, 13.8, 96, -10_000),
    "SD": _snapshot(47_900_000, 2.5, 4.4, 65.9, 40.5, 3.6, 36.1, 32.2, 27, -50_000),
    "TZ": _snapshot(65_500_000, 2.9, 4.7, 66.2, 43.3, 2.8, 37.4, 5.3, 73, -40_000),
    "SA": _snapshot(36_400_000, 1.6, 2.3, 77.6, 23.9, 3.7, 84.7, 28.4, 17, 100_000),
    "IQ": _snapshot(44_500_000, 2.3, 3.5, 71.6, 38.2, 3.4, 71.4, 25.2, 102, 7_500),
    "YE": _snapshot(34_450_000, 2.3, 3.7, 63.4, 39.2, 2.9, 39.2, 24.0, 65, -31_000),
    "SY": _snapshot(22_130_000, 4.2, 2.7, 73.7, 32.1, 4.2, 56.8, 20.0, 120, 840_000),
    "JO": _snapshot(11_300_000, 0.6, 2.6, 75.5, 32.3, 4.1, 91.8, 40.2, 127, 12_000),
    "LB": _snapshot(5_500_000, -0.6, 2.1, 75.2, 22.0, 8.2, 89.3, 22.0, 539, -130_000),
    "IN": _snapshot(1_428_600_000, 0.8, 2.0, 70.8, 25.3, 7.0, 36.4, 23.2, 481, -500_000),
    "PK": _snapshot(240_500_000, 1.9, 3.3, 67.7, 35.1, 4.3, 37.2, 11.0, 312, -1_300_000),
    "BD": _snapshot(172_950_000, 1.0, 2.0, 72.4, 26.0, 5.8, 40.5, 12.1, 1329, -2_500_000),
    "AF": _snapshot(42_200_000, 2.3, 4.5, 62.0, 43.0, 2.6, 26.5, 17.6, 65, -180_000),
    "NP": _snapshot(30_900_000, 1.8, 2.0, 70.8, 28.6, 6.2, 21.8, 6.3, 216, -165_000),
    "CN": _snapshot(1_425_200_000, -0.02, 1.0, 78.6, 17.2, 14.3, 65.2, 11.6, 152, -310_000),
    "JP": _snapshot(123_300_000, -0.5, 1.2, 84.8, 11.8, 29.9, 91.9, 4.0, 338, 75_000),
    "ID": _snapshot(277_500_000, 0.9, 2.2, 68.6, 24.5, 6.9, 58.6, 14.0, 153, -98_000),
    "PH": _snapshot(117_300_000, 1.5, 2.7, 69.3, 30.2, 5.6, 48.4, 9.3, 390, -67_000),
    "VN": _snapshot(99_500_000, 0.8, 2.0, 75.4, 22.5, 8.4, 39.5, 7.3, 321, -80_000),
    "MM": _snapshot(54_200_000, 0.7, 2.1, 67.1, 25.3, 6.5, 32.0, 4.3, 83, -163_000),
    "TH": _snapshot(71_800_000, 0.1, 1.1, 78.7, 16.1, 14.0, 53.3, 5.2, 140, 19_000),
    "KR": _snapshot(51_740_000, 0.0, 0.7, 83.7, 11.5, 18.4, 81.4, 7.3, 531, 30_000),
    "DE": _snapshot(84_480_000, 0.1, 1.4, 81.7, 14.0, 22.4, 77.8, 6.1, 240, 331_000),
    "FR": _snapshot(68_170_000, 0.2, 1.7, 82.5, 17.2, 21.7, 81.8, 17.3, 124, 90_000),
    "GB": _snapshot(67_740_000, 0.4, 1.6, 81.8, 17.4, 19.0, 84.4, 11.5, 279, 260_000),
    "IT": _snapshot(59_030_000, -0.2, 1.2, 83.5, 12.5, 24.1, 71.7, 23.7, 200, 148_000),
    "UA": _snapshot(37_000_000, -1.5, 1.2, 73.6, 15.4, 17.4, 70.1, 19.0, 64, -7_000_000),
    "PL": _snapshot(37_750_000, -0.3, 1.3, 78.7, 15.1, 19.4, 60.1, 11.8, 124, 12_000),
    "RU": _snapshot(144_240_000, -0.2, 1.5, 73.4, 18.4, 16.0, 75.1, 8.9, 9, 182_000),
    "TR": _snapshot(85_280_000, 0.6, 1.6, 76.0, 22.6, 9.5, 77.0, 18.3, 111, -400_000),
    "US": _snapshot(339_900_000, 0.5, 1.6, 79.1, 17.7, 17.3, 83.3, 8.3, 37, 999_000),
    "BR": _snapshot(216_400_000, 0.5, 1.6, 76.0, 20.2, 10.2, 87.6, 20.3, 26, 6_000),
    "MX": _snapshot(128_900_000, 0.7, 1.8, 75.1, 24.3, 8.2, 81.3, 6.2, 66, -300_000),
    "CO": _snapshot(52_080_000, 0.5, 1.7, 77.3, 22.0, 9.6, 82.1, 19.8, 46, 88_000),
    "AR": _snapshot(46_650_000, 0.8, 1.9, 77.1, 23.5, 11.9, 92.4, 22.4, 17, 4_000),
    "VE": _snapshot(28_440_000, -0.2, 2.2, 72.1, 26.6, 7.7, 88.1, 14.5, 32, -680_000),
    "PE": _snapshot(34_050_000, 0.8, 2.1, 77.0, 24.5, 8.9, 78.9, 8.4, 27, 100_000),
    "HT": _snapshot(11_720_000, 1.2, 2.8, 64.0, 32.3, 4.8, 59.2, 30.0, 424, -35_000),
    "AU": _snapshot(26_640_000, 1.9, 1.6, 83.3, 18.3, 17.0, 86.6, 8.5, 3, 500_000),
})


def default_snapshot_store() -> FallbackSnapshotStore:
    return FallbackSnapshotStore(DEFAULT_SNAPSHOTS)
