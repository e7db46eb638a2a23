import sentry_sdk

from wage_engine.core.config import Settings
from wage_engine.core.exceptions import WageEngineError


def _drop_expected_errors(event, hint):
    # Domain errors are client outcomes, not incidents.
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], WageEngineError) and not exc_info[1].retryable:
        return None
    return event


def configure_error_monitoring(settings: Settings) -> bool:
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.env,
        traces_sample_rate=0.2,
        before_send=_drop_expected_errors,
    )
    return True
