"""UI-free core: records, statistics, time bucketing, the series pipeline and map sync."""
