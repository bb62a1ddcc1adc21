"""
Repositories package
Separate database queries from models and services

Each repository encapsulates database operations for one table:
- user_repository.py / profile_repository.py
- watchlog_repository.py
- friendship_repository.py
- watchlist_repository.py / list_repository.py

Usage:
    from repositories.watchlog_repository import WatchLogRepository
    logs = WatchLogRepository.get_all_by_user(user_id)
"""
