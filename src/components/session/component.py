import logging

from src.domain.errors import AppError

from ..context import UseCaseContext
from .models import SessionOutput, SignOutInput

logger = logging.getLogger(__name__)


def run_get_session(ctx: UseCaseContext) -> SessionOutput:
    actor = ctx.identity.current()
    if not actor:
        return SessionOutput(error=AppError.unauthenticated())
    return SessionOutput(identity=actor, success=True)


def run_sign_out(inp: SignOutInput, ctx: UseCaseContext) -> SessionOutput:
    """
    Forget the cached session for ``inp.token``. Revoking the session itself
    belongs to the host's auth provider; this only guarantees that the next
    request with the token is resolved afresh.
    """
    actor = ctx.identity.current()
    if ctx.session_cache is not None and inp.token:
        ctx.session_cache.invalidate(inp.token)
    if actor:
        logger.info("User %s signed out", actor.user_id)
    return SessionOutput(identity=actor, success=True)
