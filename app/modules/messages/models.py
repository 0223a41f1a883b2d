# Supabase tables: messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

messages:
- id: uuid (primary key)
- skill_request_id: uuid (references skill_requests.id, on delete cascade, not null)
- sender_id: uuid (not null)
- content: text (not null)
- is_read: boolean (default: false) - the only column ever updated
- created_at: timestamp (default: now()) - ordering key for a conversation
- index on skill_request_id, index on created_at

RLS: select for participants of the parent request; insert only when
sender_id = auth.uid() and the sender is a participant; update (is_read) only
by the participant who did not send the message.
"""
