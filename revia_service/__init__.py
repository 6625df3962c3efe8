"""Session reminder service.

Preference reconciliation, permission handling and reminder scheduling for
training and rehabilitation session notifications.
"""

__version__ = "0.1.0"
