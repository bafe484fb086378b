"""
Supabase 데이터베이스 접근
"""
from .supabase_client import SupabaseDB, PersistenceError

__all__ = ['SupabaseDB', 'PersistenceError']
