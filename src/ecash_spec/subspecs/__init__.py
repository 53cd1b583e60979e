"""Header validation and history sync for the eCash chain."""
