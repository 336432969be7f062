"""
Lecture reports backend.

A FastAPI service for user registration/login and for submitting, searching
and exporting lecturer reports, ratings and course assignments over a
relational row store.
"""
