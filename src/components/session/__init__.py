"""
Session component - current identity and sign-out.
"""

from .component import run_get_session, run_sign_out
from .models import SessionOutput, SignOutInput

__all__ = [
    "run_get_session",
    "run_sign_out",
    "SessionOutput",
    "SignOutInput",
]
