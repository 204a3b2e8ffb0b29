"""Pure domain services: guard, hashing, chain verification, keys and tokens."""
