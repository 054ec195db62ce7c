# Quick reference commands (run from repo root). These are comments only; copy/paste as needed.

# Install the package with test dependencies
# python -m pip install -e ".[test]"

# Run the full test suite (DB tests under tests/db skip unless DATABASE_URL is set)
# python -m pytest

# Run the DB-backed tests against a scratch Postgres database
# DATABASE_URL=postgresql://localhost/hsc_test python -m pytest tests/db

# Run focused test files
# python -m pytest tests/test_week.py tests/test_pricing.py tests/test_slots.py
# python -m pytest tests/test_bidding.py tests/test_market.py tests/test_ads_routes.py
# python -m pytest tests/test_payments.py
# python -m pytest tests/test_admin_routes.py tests/test_auth_routes.py

# Start the API locally (with env vars loaded)
# python -m dotenv run -- python -m uvicorn app.api:app --reload

# Forward Stripe webhooks to the local API
# stripe listen --forward-to localhost:8000/api/webhooks/stripe

# Market maintenance (cron): expire stale bids and re-rank, then clear old tokens
# python -m dotenv run -- hsc-market recalculate
# python -m dotenv run -- hsc-market recalculate --week 2024-01-15
# python -m dotenv run -- hsc-market market
# python -m dotenv run -- hsc-market cleanup-tokens
