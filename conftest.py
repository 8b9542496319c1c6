"""
Root pytest configuration for the Django project.

Points Django at the project settings and fills in the environment the
settings require, so the suite runs without a .env file, Redis or Stripe.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os
import tempfile

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

TEST_ENVIRONMENT = {
    "SECRET_KEY": "test-secret-key",
    "DEBUG": "False",
    "SECURE_SSL_REDIRECT": "False",
    "ALLOWED_HOSTS": "testserver,localhost",
    "STRIPE_SECRET_KEY": "sk_test_123",
    "STRIPE_WEBHOOK_SECRET": "whsec_test_123",
    "TRIAL_STRIPE_PRICE_ID": "price_trial",
    "PAID_STRIPE_PRICE_ID": "price_paid",
    "CACHE_BACKEND": "locmem",
    "LOG_DIR": os.path.join(tempfile.gettempdir(), "subscriptions-test-logs"),
    # Never pick up a developer's .env.development
    "ENV_FILE": os.devnull,
}

for name, value in TEST_ENVIRONMENT.items():
    os.environ.setdefault(name, value)
