"""paynotify: Stripe webhook verification and payment notifications."""

__version__ = "0.1.0"
