"""Student and course records backend.

The FastAPI application lives in `student_records.main`. Services,
repositories and document models are split into their own modules and
documented there.
"""
