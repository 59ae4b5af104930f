"""spendlens: receipt text parsing and bank description classification."""
