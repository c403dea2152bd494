"""Audit provenance for mutations.

An :class:`Audit` records who (app and user) changed something and when.
A :class:`SimpleAudit` pairs the Audit of an entity's creation with the
Audit of its latest change. The moment is always supplied by the caller,
so every entity written in one transaction shares one timestamp.
"""

from dataclasses import dataclass, replace
from datetime import UTC, datetime

from orgstack.core.exceptions import ValidationError
from orgstack.domain.models import App, User


@dataclass(frozen=True, slots=True)
class Audit:
    """Who/what/when for a single mutation.

    Attributes:
        app: The app performing the mutation
        user: The user performing the mutation (None for system actions)
        moment: Timezone-aware time of the mutation
    """

    app: App
    user: User | None
    moment: datetime


@dataclass(frozen=True, slots=True)
class SimpleAudit:
    """Create/Update provenance of an entity.

    Attributes:
        create: Audit of the entity's creation; never overwritten
        update: Audit of the entity's latest mutation
    """

    create: Audit
    update: Audit


def utc_now() -> datetime:
    """Default clock: the current moment in UTC."""
    return datetime.now(UTC)


def new_audit(app: App, user: User | None, moment: datetime) -> Audit:
    """Build an Audit.

    Raises:
        ValidationError: If moment is naive
    """
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValidationError("audit moment must be timezone-aware")
    return Audit(app=app, user=user, moment=moment)


def new_simple_audit(audit: Audit) -> SimpleAudit:
    """Provenance for a newly created entity: create and update are equal."""
    return SimpleAudit(create=audit, update=audit)


def touch(simple_audit: SimpleAudit, audit: Audit) -> SimpleAudit:
    """Record a mutation, keeping the create audit."""
    return replace(simple_audit, update=audit)
