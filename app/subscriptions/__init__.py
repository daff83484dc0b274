"""
Subscriptions app.

Organization plan subscriptions: new subscriptions, renewals and upgrades
are all paid through the payments engine.
"""
