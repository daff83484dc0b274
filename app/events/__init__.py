"""
Events app.

Events, registrations, guests and event-linked merchandise. Payment
completion for EVENT_REGISTRATION, EVENT_PAYMENT and MERCHANDISE
references mutates these records.
"""
