"""Services of the ppcalc package."""
