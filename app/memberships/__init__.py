"""
Memberships app.

Batch-based annual fees and yearly memberships activated by MEMBERSHIP
payments.
"""
