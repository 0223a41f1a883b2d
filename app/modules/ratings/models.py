# Supabase tables: ratings (+ aggregate columns on profiles)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

ratings:
- id: uuid (primary key)
- request_id: uuid (references skill_requests.id, on delete cascade, not null)
- rater_id: uuid (references auth.users.id, not null)
- rated_id: uuid (references auth.users.id, not null)
- rating: integer (not null, check 1..5)
- feedback: text (nullable)
- created_at: timestamp (default: now())
- unique constraint on (request_id, rater_id)

profiles aggregate columns (system-owned):
- average_rating: numeric(3,2) - mean of ratings where rated_id = profile.user_id
- successful_swaps: integer - count(distinct request_id) of ratings received

The update_profile_stats trigger recomputes both columns AFTER INSERT on
ratings, inside the inserting transaction, so they never lag committed ratings.
"""
