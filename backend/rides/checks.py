"""System checks for ride policy settings."""

from django.conf import settings
from django.core.checks import Error, register

CANCELLATION_POLICIES = ("retain", "zero")


@register()
def check_cancellation_policy(app_configs, **kwargs):
    policy = getattr(settings, "RIDE_STARTED_CANCELLATION_POLICY", "retain")
    if policy in CANCELLATION_POLICIES:
        return []
    return [
        Error(
            f"RIDE_STARTED_CANCELLATION_POLICY is {policy!r}.",
            hint=f"Use one of {', '.join(CANCELLATION_POLICIES)}.",
            id="rides.E001",
        )
    ]
