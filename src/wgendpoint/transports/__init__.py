"""Network transports used to look up endpoint hostnames (UDP DNS and DoH JSON)."""
