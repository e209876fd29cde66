"""
Background Jobs
Dramatiq broker and actors
"""
