"""
Invitation Token Claims

Typed view of the JWT payload. Validated once, right after signature
verification; everything downstream works with this model instead of
the raw dict.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

ALLOWED_USES = 1
TOKEN_PURPOSE = "supplier_onboarding"
DEFAULT_SCOPE = ["supplier.onboard"]


class InvitationClaims(BaseModel):
    """
    Claims carried by a supplier invitation token.

    invitation_id and supplier_email are required for validation. The
    descriptive fields are display metadata only and never drive an
    authorization decision.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    # Registered claims
    iss: StrictStr
    sub: StrictStr
    aud: Union[StrictStr, List[StrictStr]]
    iat: StrictInt
    exp: StrictInt
    jti: StrictStr

    # Invitation claims
    invitation_id: StrictStr = Field(..., min_length=1)
    supplier_email: StrictStr = Field(..., min_length=3)

    # Display metadata
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    requester_id: Optional[str] = None
    requester_name: Optional[str] = None
    department_code: Optional[str] = None
    cost_center: Optional[str] = None

    scope: List[str] = Field(default_factory=lambda: list(DEFAULT_SCOPE))
    purpose: str = TOKEN_PURPOSE
    allowed_uses: int = ALLOWED_USES
    initial_state: Optional[str] = None
    created_at: Optional[str] = None
