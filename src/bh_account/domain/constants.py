"""Coin economy constants (whole coins)."""

DAILY_CLAIM_REWARD = 10
REFERRER_BONUS = 100
REFERRED_BONUS = 50
DEPLOYMENT_COST = 50
