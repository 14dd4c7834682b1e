"""Persistence layer: Supabase client factory and the generic document repository."""
