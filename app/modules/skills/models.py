# Supabase tables: skills
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

skills:
- id: uuid (primary key)
- user_id: uuid (references auth.users.id, on delete cascade, not null) - owner
- title: text (not null)
- description: text (nullable)
- category: skill_category enum (technology | language | music | art | cooking | sports | business | other)
- is_offering: boolean (default: true) - true = can teach, false = wants to learn
- is_approved: boolean (default: false) - admins approve; rejection deletes the row
- created_at: timestamp (default: now())
- updated_at: timestamp (maintained by trigger)

RLS: approved skills are visible to everyone, unapproved ones only to the owner
and admins; insert/update/delete by the owner (update/delete also by admins).
guard_skill_update (BEFORE UPDATE): non-admins cannot approve, and a
change to title, description or category resets is_approved to false.
"""
