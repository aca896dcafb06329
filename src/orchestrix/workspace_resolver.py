"""
Workspace identity resolution for stop events.

Resolution runs an ordered list of strategies over a ResolutionContext. Each
strategy returns a tagged Resolution:

- FOUND: stop, this is the workspace
- NOT_FOUND: try the next strategy
- AMBIGUOUS: stop, resolution fails (never guess between candidates)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from orchestrix.context import ResolutionContext
from orchestrix.session_naming import (
    build_session_name,
    is_recognized_session,
    parse_blueprint_id,
    user_prefix,
)


class ResolutionStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    session: Optional[str] = None
    method: str = ""
    detail: str = ""
    candidates: tuple = ()

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.FOUND

    @classmethod
    def not_found(cls, method: str, detail: str = "") -> "Resolution":
        return cls(ResolutionStatus.NOT_FOUND, method=method, detail=detail)


Strategy = Callable[[ResolutionContext], Resolution]


def explicit_hint(ctx: ResolutionContext) -> Resolution:
    """Accept ORCHESTRIX_SESSION as-is; the runtime that set it knows best."""
    if ctx.env_session:
        return Resolution(
            ResolutionStatus.FOUND,
            session=ctx.env_session,
            method="env",
            detail="Session from env ORCHESTRIX_SESSION",
        )
    return Resolution.not_found("env")


def persisted_identifier(ctx: ResolutionContext) -> Resolution:
    """Build u<token>-bp-<id> from blueprint-id.txt and the cwd user token."""
    method = "blueprint-id-file"
    if not ctx.persisted_blueprint_id:
        return Resolution.not_found(method)

    user_token = ctx.user_token
    if not user_token:
        return Resolution.not_found(method, "cwd has no user token")

    candidate = build_session_name(user_token, ctx.persisted_blueprint_id)
    if candidate not in ctx.live_sessions:
        return Resolution.not_found(
            method, f"Constructed session {candidate} does not exist, falling back"
        )
    return Resolution(
        ResolutionStatus.FOUND,
        session=candidate,
        method=method,
        detail="Session constructed from blueprint-id.txt",
    )


def cwd_inference(ctx: ResolutionContext) -> Resolution:
    """Match live sessions against the user token in the working directory."""
    method = "cwd"
    user_token = ctx.user_token
    if not user_token:
        return Resolution.not_found(method, "cwd has no user token")

    prefix = user_prefix(user_token)
    matches = [name for name in ctx.live_sessions if name.startswith(prefix)]

    if len(matches) == 1:
        return Resolution(
            ResolutionStatus.FOUND,
            session=matches[0],
            method=method,
            detail="Session inferred from cwd (single match)",
        )
    if len(matches) > 1:
        return Resolution(
            ResolutionStatus.AMBIGUOUS,
            method=method,
            detail=(
                f"Multiple sessions found for user {user_token}; "
                "ensure the gateway writes blueprint-id.txt on initialization"
            ),
            candidates=tuple(matches),
        )
    return Resolution.not_found(method, f"No sessions with prefix {prefix}")


def first_available(ctx: ResolutionContext) -> Resolution:
    """Least reliable: first recognized session in enumeration order."""
    for name in ctx.live_sessions:
        if is_recognized_session(name):
            return Resolution(
                ResolutionStatus.FOUND,
                session=name,
                method="fallback",
                detail="Session from fallback (first recognized)",
            )
    return Resolution.not_found("fallback")


DEFAULT_STRATEGIES: List[Strategy] = [
    explicit_hint,
    persisted_identifier,
    cwd_inference,
    first_available,
]


def resolve_workspace(
    ctx: ResolutionContext,
    strategies: Optional[Sequence[Strategy]] = None,
    on_attempt: Optional[Callable[[Resolution], None]] = None,
) -> Resolution:
    """
    Resolve the workspace a stop event belongs to.

    Args:
        ctx: Resolution context for this invocation
        strategies: Ordered strategies (defaults to DEFAULT_STRATEGIES)
        on_attempt: Optional callback invoked with every strategy result
            (used for logging fall-through reasons)

    Returns:
        The first FOUND or AMBIGUOUS resolution, otherwise NOT_FOUND
    """
    if strategies is None:
        strategies = DEFAULT_STRATEGIES

    for strategy in strategies:
        result = strategy(ctx)
        if on_attempt is not None:
            on_attempt(result)
        if result.status is not ResolutionStatus.NOT_FOUND:
            return result

    return Resolution.not_found("none", "No session found")


def resolve_blueprint_id(ctx: ResolutionContext, session_name: str) -> Optional[str]:
    """
    Determine the blueprint id reported to the gateway.

    A canonical u<token>-bp-<id> name always carries its own id. The
    persisted id only applies to names that don't parse (e.g. a locally
    bootstrapped orchestrix-<repo> session).
    """
    blueprint_id = parse_blueprint_id(session_name)
    if blueprint_id:
        return blueprint_id
    return ctx.persisted_blueprint_id
