"""Physical and numerical constants."""

R_GAS = 8.314462618  # J/mol/K
ONE_ATM = 101325.0  # Pa
REFERENCE_TEMPERATURE = 298.15  # K

# Ceiling applied to reverse-rate multipliers.
BIG_NUMBER = 1.0e300
# Guard added to the high-pressure-limit rate in the reduced pressure.
SMALL_NUMBER = 1.0e-300

# Offset applied to cached T/P sentinels when the reaction set mutates.
CACHE_INVALIDATION_OFFSET = 0.13579
