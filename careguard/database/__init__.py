"""
Storage backends: local fallback store, SQL table adapter and key-value caches
"""
