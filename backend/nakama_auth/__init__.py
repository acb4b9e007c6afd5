"""
NakamaStream account authentication and security-control service.
"""
