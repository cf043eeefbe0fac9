"""GobsVault paper-trading API."""
