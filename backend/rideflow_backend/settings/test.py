from .base import *  # noqa: F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CHANNEL_LAYERS = {
    "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

RIDE_OTP_MAX_ATTEMPTS = None
RIDE_STARTED_CANCELLATION_POLICY = "retain"
RIDE_CANCELLATION_FEE = "0.00"
RIDE_PAYMENT_HOOK = "payments.hooks.celery_payment_hook"

LOGGING['root']['level'] = 'WARNING'  # noqa: F405
