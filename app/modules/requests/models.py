# Supabase tables: skill_requests
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

skill_requests:
- id: uuid (primary key)
- requester_id: uuid (references auth.users.id, not null)
- provider_id: uuid (references auth.users.id, not null)
- offered_skill_id: uuid (references skills.id, on delete cascade) - skill the requester teaches
- wanted_skill_id: uuid (references skills.id, on delete cascade) - skill the provider teaches
- message: text (nullable)
- status: request_status enum (pending | accepted | completed | cancelled | rejected), default 'pending'
- created_at: timestamp (default: now())
- updated_at: timestamp (maintained by trigger)
- partial unique index on (requester_id, provider_id, offered_skill_id, wanted_skill_id) where status = 'pending'

RLS: select/update for requester, provider or admin; insert only when requester_id = auth.uid().
Status changes are written as conditional updates (eq status = expected) so a
concurrent change makes the second write match no row.
guard_request_update (BEFORE UPDATE) enforces the same lifecycle for direct
PostgREST writes and raises 23514 for anything else, including writes to
completed, rejected or cancelled rows.
"""
