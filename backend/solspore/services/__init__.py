"""Business services: odds, bet ledger, settlement, users, tournaments, auth."""
