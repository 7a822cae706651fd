"""HIV Care gateway: patient management over a hosted Supabase backend."""

__version__ = "0.1.0"
