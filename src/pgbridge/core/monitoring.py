"""Optional Sentry error tracking and tracing.

Nothing is sent unless a DSN is configured; without sentry_sdk.init() every
span and capture call in the bridge is a no-op.
"""

import os

import sentry_sdk

from pgbridge.__about__ import __version__

SENTRY_DSN_ENV = "PGBRIDGE_SENTRY_DSN"


def setup_sentry(dsn: str | None = None, environment: str = "local") -> bool:
    """Initialize Sentry when a DSN is given or set in PGBRIDGE_SENTRY_DSN.

    Returns True if Sentry was initialized.
    """
    dsn = dsn or os.environ.get(SENTRY_DSN_ENV)
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True
