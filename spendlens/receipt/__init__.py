"""Receipt text parsing: shared numeric helpers and per-retailer parsers."""
