"""TaskMaster — personal task management backend.

Users register, log in, and manage their own tasks. Every request
after login carries a signed bearer token; every task operation is
scoped to the user that owns the task.
"""

__version__ = "1.0.0"
