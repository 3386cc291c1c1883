"""VIN decode normalisation and field reconciliation."""
