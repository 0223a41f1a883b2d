# Supabase tables: admin_messages (+ moderation over profiles, skills, skill_requests, user_roles)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

admin_messages:
- id: uuid (primary key)
- admin_id: uuid (references auth.users.id, not null) - author
- title: text (not null)
- message: text (not null)
- is_active: boolean (default: true) - toggled, never deleted
- created_at: timestamp (default: now())

RLS: active messages are visible to everyone; admins manage all rows.
Every moderation operation is gated on a single predicate: the caller has an
'admin' row in user_roles (public.is_admin(auth.uid()) in the policies,
require_admin in the API).
"""
