"""Job Dashboard - application tracking and CAPTCHA resolution."""

__version__ = "1.0.0"
