"""
Repository layer for database operations.

Async functions taking an AsyncSession, grouped by entity. Writes commit
before returning; absence is reported as None/False and storage errors
propagate to the caller.
"""
from eventconnect.db.repositories.users import (
    get_user,
    get_user_by_email,
    upsert_user,
    update_profile,
    add_skipped_event,
    increment_events_shown,
    reset_skipped_events,
)
from eventconnect.db.repositories.events import (
    create_event,
    get_event_row,
    update_event,
    deactivate_event,
    create_external_event,
)
from eventconnect.db.repositories.rsvps import (
    get_user_rsvp,
    count_confirmed_rsvps,
    create_rsvp,
    update_rsvp,
    upsert_rsvp,
    delete_rsvp,
)
from eventconnect.db.repositories.roster import (
    list_events,
    get_event,
    list_user_events,
    list_chat_events,
    list_attendees,
)
from eventconnect.db.repositories.chat import (
    create_chat_message,
    list_chat_messages,
    delete_chat_message,
    mark_read,
    is_participant,
    in_chat_clause,
    participant_ids,
    set_chat_membership,
    get_unread_counts,
)
