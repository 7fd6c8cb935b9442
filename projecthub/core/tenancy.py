"""
Tenancy resolution - decides which company a request is scoped to.
"""
import uuid
from typing import Optional

from projecthub.core.exceptions import CrossTenantDeniedError, InvalidStateError
from projecthub.core.identity import Identity


def resolve_company_scope(
    identity: Identity,
    target_company_id: Optional[uuid.UUID] = None,
    required: bool = True
) -> Optional[uuid.UUID]:
    """
    Return the effective company id for a request.

    An explicit company id different from the caller's own is only honoured
    for SUPERADMIN. Without one, the caller's own company is used.

    Raises:
        CrossTenantDeniedError: a non-SUPERADMIN asked for another company
        InvalidStateError: no company could be resolved and one is required
    """
    if target_company_id is not None and target_company_id != identity.company_id:
        if not identity.is_superadmin:
            raise CrossTenantDeniedError()
        return target_company_id

    if identity.company_id is None and required:
        raise InvalidStateError("You are not associated with any company")

    return identity.company_id
