"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and embeds the salt and cost factor in the hash string
("$2b$12$..."), so verify() needs nothing but the stored hash.
The work factor (rounds=12) takes ~100ms per hash on modern hardware;
tests drop it to the minimum (4) to stay fast.
"""

import bcrypt

# bcrypt only looks at the first 72 bytes of input
_MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """One-way hash + verify. Never stores or logs the plaintext."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt."""
        pw_bytes = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a candidate password against a stored hash.

        A malformed stored hash is treated as a mismatch, not an error.
        """
        try:
            pw_bytes = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
            return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False
