# Supabase Auth + public.user_roles
# Authentication itself is Supabase's built-in system (auth.users); no custom
# credential tables are required. Roles live in a separate table so that they
# are never a client-editable session claim.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (user_metadata carries full_name and requested role)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Expected Supabase table structure:

user_roles:
- id: uuid (primary key)
- user_id: uuid (unique, references auth.users.id, on delete cascade)
- role: app_role enum ('admin' | 'user'), default 'user'
- created_at: timestamp (default: now())

The on_auth_user_created trigger inserts the profiles row and a 'user' user_roles
row for every new auth user. A requested admin role stays in user_metadata
until role resolution redeems it (only when ALLOW_ADMIN_SIGNUP is set).
Only admins may write user_roles (RLS); users may read their own row.
"""
