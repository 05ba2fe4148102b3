"""
API routers for Lifebook.
"""
