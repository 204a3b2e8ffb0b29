"""Domain layer: pure governance types, rule tables and ledger integrity."""
