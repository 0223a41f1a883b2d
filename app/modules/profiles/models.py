# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key)
- user_id: uuid (unique, references auth.users.id, on delete cascade)
- full_name: text (not null) - from signup metadata, 'New User' if missing
- location: text (nullable)
- bio: text (nullable)
- avatar_url: text (nullable) - public URL in the avatars bucket / S3
- is_public: boolean (default: true) - listed in browse
- is_banned: boolean (default: false) - set by admins, never deletes data
- availability: availability_type[] (weekdays | weekends | evenings | mornings | flexible)
- average_rating: numeric (default: 0, unrounded mean) - system-owned, see ratings trigger
- successful_swaps: integer (default: 0) - system-owned, see ratings trigger
- created_at: timestamp (default: now())
- updated_at: timestamp (maintained by trigger)

Profiles are created by the on_auth_user_created trigger and never hard-deleted.
RLS: visible when public, own, or to admins; updated by the owner or admins.
guard_profile_update (BEFORE UPDATE): only admins and the ratings trigger may
change is_banned, average_rating or successful_swaps.
"""
