"""Core business logic.

Modules:
- errors: domain error kinds
- grader: answer normalisation and correctness
- scheduler: due-item selection and mastery transitions
- quiz_session: begin/submit orchestration in one transaction
- stats: dashboard summary
"""

__all__ = [
    "errors",
    "grader",
    "scheduler",
    "quiz_session",
    "stats",
]
