"""BTCDOM2 strategy core: short-candidate scoring and temperature series caching."""
