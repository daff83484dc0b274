"""
Notifications app.

In-app notifications with an email mirror. Other apps notify users
through NotificationService.send(user, transaction, context).
"""
