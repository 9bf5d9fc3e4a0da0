"""
Local stand-ins used when no remote backend is configured
"""
