"""
Access Resolver - decides whether a technician may view or verify a device.

Resolution Rules (in order):
1. Only Active restriction rows of the technician are considered
2. A rule applies when it targets the device directly, or targets a tag
   whose items include the device
3. Non-permanent rules apply only inside [valid_from, valid_until]; a
   missing bound is open on that side
4. Highest priority wins; ties prefer device rules over tag rules, then
   the most recently created rule
5. No applicable rule -> Allow

The selection is a pure function over already-fetched rows. The async
entry points only load rows and never write; auditing a denial is the
caller's job.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation
from core.exceptions import NotFoundError, ValidationError
from db.enums import AccessType, CallerRole, RestrictionStatus, TagEntityType, TechnicianStatus
from db.models import ImeiRestriction, as_naive_utc, utc_now
from repositories.imei_restriction_repository import ImeiRestrictionRepository
from repositories.tag_repository import TagRepository
from repositories.technician_repository import TechnicianRepository
from schemas.imei import AccessResult, Caller, DeviceRef

logger = logging.getLogger(__name__)

GENERIC_DENIAL_MESSAGE = "You are not authorized to view data for this IMEI."


class AccessResolver:
    """
    Restriction evaluation for technicians and admin callers.

    All methods are static; the pure helpers take rows and a timestamp and
    have no side effects.
    """

    @staticmethod
    def is_within_validity_window(rule: ImeiRestriction, now: datetime) -> bool:
        """Check whether a rule's validity window contains now."""
        if rule.is_permanent:
            return True

        now = as_naive_utc(now)
        if rule.valid_from is not None and as_naive_utc(rule.valid_from) > now:
            return False
        if rule.valid_until is not None and now > as_naive_utc(rule.valid_until):
            return False
        return True

    @staticmethod
    def _targets_device(rule: ImeiRestriction, device_id: int, device_tag_ids: Iterable[int]) -> bool:
        if rule.device_id is not None:
            return rule.device_id == device_id
        return rule.tag_id is not None and rule.tag_id in device_tag_ids

    @staticmethod
    def select_rule(
        restrictions: Sequence[ImeiRestriction],
        device_id: int,
        device_tag_ids: Iterable[int],
        now: datetime,
    ) -> Optional[ImeiRestriction]:
        """
        Pick the deciding rule for a device, or None when no rule applies.

        Args:
            restrictions: Rules of one technician (any status)
            device_id: Target device
            device_tag_ids: Ids of active tags containing the device
            now: Evaluation time

        Returns:
            The applicable rule with the highest priority, device rules
            first on ties, newest first after that
        """
        tag_ids = set(device_tag_ids)
        applicable = [
            rule
            for rule in restrictions
            if rule.status == RestrictionStatus.ACTIVE
            and AccessResolver._targets_device(rule, device_id, tag_ids)
            and AccessResolver.is_within_validity_window(rule, now)
        ]
        if not applicable:
            return None

        return max(
            applicable,
            key=lambda rule: (
                rule.priority or 0,
                rule.device_id is not None,
                rule.created_at or datetime.min,
                rule.id or 0,
            ),
        )

    @staticmethod
    def resolve_access(
        restrictions: Sequence[ImeiRestriction],
        device_id: int,
        device_tag_ids: Iterable[int],
        now: datetime,
    ) -> AccessResult:
        """
        Decide access for one device from a technician's rules.

        This is a PURE FUNCTION with no side effects. Denials carry the
        rule's reason verbatim, or a generic message when the rule has none.
        """
        rule = AccessResolver.select_rule(restrictions, device_id, device_tag_ids, now)

        if rule is None:
            return AccessResult(has_access=True, device_id=device_id)

        if rule.access_type == AccessType.DENY:
            reason = (rule.reason or "").strip() or GENERIC_DENIAL_MESSAGE
            return AccessResult(has_access=False, restriction_reason=reason, device_id=device_id)

        return AccessResult(has_access=True, device_id=device_id)

    @staticmethod
    def _require_device_id(device_ref: DeviceRef) -> int:
        if device_ref is None or device_ref.device_id is None:
            identifier = device_ref.imei if device_ref is not None else None
            raise NotFoundError("Device", identifier)
        return device_ref.device_id

    @staticmethod
    async def _device_tag_ids(
        db: AsyncSession, restrictions: Sequence[ImeiRestriction], device_id: int
    ) -> List[int]:
        if not any(rule.tag_id is not None for rule in restrictions):
            return []
        return await TagRepository.find_tag_ids_for_entity(db, TagEntityType.DEVICE, device_id)

    @staticmethod
    @critical_database_operation("check_access")
    async def check_access(
        db: AsyncSession,
        technician_id: int,
        device_ref: DeviceRef,
        now: Optional[datetime] = None,
    ) -> AccessResult:
        """
        Check whether a technician may access a device.

        Args:
            db: Database session
            technician_id: Technician to evaluate
            device_ref: Device resolved by the directory
            now: Evaluation time (defaults to the current UTC time)

        Returns:
            AccessResult; a denial is a result, never an exception

        Raises:
            NotFoundError: Technician missing or not active, or device has no id
        """
        device_id = AccessResolver._require_device_id(device_ref)
        now = as_naive_utc(now) if now is not None else utc_now()

        technician = await TechnicianRepository.find_by_id(db, technician_id)
        if technician is None or technician.status != TechnicianStatus.ACTIVE:
            raise NotFoundError("Technician", technician_id)

        restrictions = await ImeiRestrictionRepository.find_by_technician(
            db, technician_id, status=RestrictionStatus.ACTIVE
        )
        device_tag_ids = await AccessResolver._device_tag_ids(db, restrictions, device_id)

        result = AccessResolver.resolve_access(restrictions, device_id, device_tag_ids, now)
        logger.debug(
            f"Access check: technician={technician_id}, device={device_id}, "
            f"rules={len(restrictions)}, has_access={result.has_access}"
        )
        return result

    @staticmethod
    @critical_database_operation("check_admin_access")
    async def check_admin_access(
        db: AsyncSession,
        caller: Caller,
        device_ref: DeviceRef,
        now: Optional[datetime] = None,
    ) -> AccessResult:
        """
        Check access for an admin caller.

        - SUPER_ADMIN: always allowed
        - Caller with a technician record: that technician's rules apply
        - RESELLER_ADMIN / SUPERVISOR without one: allowed when the reseller
          has no active technicians or when any of them would be allowed

        Raises:
            ValidationError: Reseller-scoped caller without a reseller
            NotFoundError: Device has no id, or linked technician inactive
        """
        device_id = AccessResolver._require_device_id(device_ref)
        now = as_naive_utc(now) if now is not None else utc_now()

        if caller.role is CallerRole.SUPER_ADMIN:
            return AccessResult(has_access=True, device_id=device_id)

        if caller.technician_id is not None:
            return await AccessResolver.check_access(db, caller.technician_id, device_ref, now)

        if caller.reseller_id is None:
            raise ValidationError(
                f"User {caller.user_id} has no reseller scope for IMEI access", field="reseller_id"
            )

        technicians = await TechnicianRepository.find_active_by_reseller(db, caller.reseller_id)
        if not technicians:
            return AccessResult(has_access=True, device_id=device_id)

        first_denial: Optional[AccessResult] = None
        device_tag_ids: Optional[List[int]] = None
        for technician in technicians:
            restrictions = await ImeiRestrictionRepository.find_by_technician(
                db, technician.id, status=RestrictionStatus.ACTIVE
            )
            if device_tag_ids is None and any(rule.tag_id is not None for rule in restrictions):
                device_tag_ids = await TagRepository.find_tag_ids_for_entity(db, TagEntityType.DEVICE, device_id)
            result = AccessResolver.resolve_access(restrictions, device_id, device_tag_ids or [], now)
            if result.has_access:
                return result
            if first_denial is None:
                first_denial = result

        logger.debug(
            f"Cumulative access denied: user={caller.user_id}, reseller={caller.reseller_id}, "
            f"device={device_id}, technicians={len(technicians)}"
        )
        return first_denial
